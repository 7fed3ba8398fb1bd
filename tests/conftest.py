"""Shared fixtures: small synthetic captures in every supported source format."""

from __future__ import annotations

import io

import dpkt
import pytest

from dogstatsd_utils.intake.replay_writer import encode_replay

SAMPLE_MESSAGES = (
    "page.views:1|c",
    "fuel.level:0.5|g|#env:prod",
    "song.length:240|h|@0.5",
    "users.uniques:1234|s",
    "latency:12.5:13.1|ms|#region:us-east,env:prod",
    "_sc|db.up|0|#env:prod",
    "_e{5,4}:title|text|#env:prod",
)


def udp_frame(payload: bytes, *, dport: int = 8125) -> bytes:
    """Ethernet/IPv4/UDP frame carrying `payload`."""
    udp = dpkt.udp.UDP(sport=40000, dport=dport, data=payload)
    udp.ulen = len(udp)
    ip = dpkt.ip.IP(
        src=b"\x7f\x00\x00\x01",
        dst=b"\x7f\x00\x00\x01",
        p=dpkt.ip.IP_PROTO_UDP,
        data=udp,
    )
    ip.len = len(ip)
    eth = dpkt.ethernet.Ethernet(
        src=b"\x02\x00\x00\x00\x00\x01",
        dst=b"\x02\x00\x00\x00\x00\x02",
        type=dpkt.ethernet.ETH_TYPE_IP,
        data=ip,
    )
    return bytes(eth)


def build_pcap(frames, *, linktype: int = dpkt.pcap.DLT_EN10MB, ng: bool = False) -> bytes:
    buf = io.BytesIO()
    writer_cls = dpkt.pcapng.Writer if ng else dpkt.pcap.Writer
    writer = writer_cls(buf, linktype=linktype)
    for i, frame in enumerate(frames):
        writer.writepkt(frame, ts=1_700_000_000 + i)
    return buf.getvalue()


@pytest.fixture
def sample_messages():
    return list(SAMPLE_MESSAGES)


@pytest.fixture
def replay_bytes(sample_messages):
    return encode_replay(sample_messages)


@pytest.fixture
def write_capture(tmp_path):
    """Write bytes to a file under tmp_path and return its path as str."""

    def _write(data: bytes, name: str = "capture.bin") -> str:
        path = tmp_path / name
        path.write_bytes(data)
        return str(path)

    return _write


@pytest.fixture
def make_udp_frame():
    return udp_frame


@pytest.fixture
def make_pcap():
    return build_pcap
