from __future__ import annotations

import io

import zstandard

from dogstatsd_utils.config import ReaderConfig
from dogstatsd_utils.intake.replay_writer import encode_replay
from dogstatsd_utils.intake.source import open_lines, resolve_source


def _lines(data: bytes, cfg: ReaderConfig | None = None):
    return list(open_lines(io.BytesIO(data), cfg))


def _zstd(data: bytes) -> bytes:
    return zstandard.ZstdCompressor().compress(data)


def test_plain_text(sample_messages):
    text = "\n".join(sample_messages).encode()

    assert _lines(text) == sample_messages


def test_text_read_in_tiny_chunks(sample_messages):
    text = "\n".join(sample_messages).encode()

    assert _lines(text, ReaderConfig(chunk_size=3)) == sample_messages


def test_replay(sample_messages, replay_bytes):
    assert _lines(replay_bytes) == sample_messages


def test_replay_with_messages_straddling_frames(sample_messages):
    blob = encode_replay(sample_messages, frame_size=7)

    assert _lines(blob) == sample_messages


def test_compressed_text(sample_messages):
    text = "\n".join(sample_messages).encode()

    assert _lines(_zstd(text)) == sample_messages


def test_compressed_replay(sample_messages):
    blob = encode_replay(sample_messages, compress=True)

    src = resolve_source(io.BytesIO(blob))
    assert (src.kind, src.compressed) == ("replay", True)
    assert _lines(blob) == sample_messages


def test_doubly_compressed_is_text():
    src = resolve_source(io.BytesIO(_zstd(_zstd(b"a:1|c\n"))))

    assert (src.kind, src.compressed) == ("text", True)


def test_decompression_can_be_disabled():
    src = resolve_source(io.BytesIO(_zstd(b"a:1|c\n")), ReaderConfig(allow_compression=False))

    assert (src.kind, src.compressed) == ("text", False)


def test_pcap_datagrams_end_their_messages(make_udp_frame, make_pcap):
    pcap = make_pcap(
        [
            make_udp_frame(b"a:1|c\nb:2|c"),
            make_udp_frame(b"c:3|c"),
            make_udp_frame(b"d:4|c\n"),
        ]
    )

    assert _lines(pcap) == ["a:1|c", "b:2|c", "c:3|c", "d:4|c"]


def test_compressed_pcap(make_udp_frame, make_pcap):
    pcap = make_pcap([make_udp_frame(b"a:1|c")])

    assert resolve_source(io.BytesIO(_zstd(pcap))).kind == "pcap"
    assert _lines(_zstd(pcap)) == ["a:1|c"]


def test_pcap_disabled_reads_as_text(make_udp_frame, make_pcap):
    pcap = make_pcap([make_udp_frame(b"a:1|c")])

    assert resolve_source(io.BytesIO(pcap), ReaderConfig(allow_pcap=False)).kind == "text"
