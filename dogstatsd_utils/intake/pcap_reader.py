"""
PCAP reader: yields UDP datagram payloads from a PCAP/PCAPNG byte stream.

- No deep parsing; only enough of each frame to reach the UDP payload.
- Each datagram is returned whole; DogStatsD datagrams are message-bounded,
  so callers terminate them before line splitting.

Implementation notes:
- Uses dpkt.pcap.Reader or dpkt.pcapng.Reader depending on the sniffed magic.
- Handles Ethernet (with optional 802.1Q VLAN tags), BSD loopback, raw IP
  and Linux cooked captures.
- Supports IPv4 and IPv6; non-UDP traffic is ignored.
"""

from __future__ import annotations

import logging
import struct
from typing import BinaryIO, Iterator, Optional

import dpkt  # type: ignore

logger = logging.getLogger(__name__)

# Link types (pcap LINKTYPE_* values) we know how to unwrap.
_DLT_NULL = 0
_DLT_EN10MB = 1
_DLT_RAW = (12, 14, 101)
_DLT_LOOP = 108
_DLT_LINUX_SLL = 113
_SUPPORTED = (_DLT_NULL, _DLT_EN10MB, _DLT_LOOP, _DLT_LINUX_SLL) + _DLT_RAW


def iter_udp_payloads(bytestream: BinaryIO, *, ng: bool = False) -> Iterator[bytes]:
    """
    Iterate UDP payloads from an open capture byte stream.

    Parameters
    ----------
    bytestream : file-like
        Binary readable stream for the (decompressed) capture bytes.
    ng : bool
        True for PCAPNG, False for classic PCAP.

    Yields
    ------
    bytes
        One non-empty UDP payload per datagram, in capture order.
    """
    reader = dpkt.pcapng.Reader(bytestream) if ng else dpkt.pcap.Reader(bytestream)
    datalink = reader.datalink()
    if datalink not in _SUPPORTED:
        logger.warning("Unsupported pcap link type %d; no payloads extracted", datalink)
        return

    # dpkt readers are iterable: (ts, buf)
    for _ts, buf in reader:
        payload = _udp_payload(datalink, buf)
        if payload:
            yield payload


# === Helpers ===


def _udp_payload(datalink: int, buf: bytes) -> Optional[bytes]:
    """
    Unwrap a single link-layer frame down to its UDP payload. Returns None
    for anything that is not UDP or does not decode.
    """
    try:
        l3 = _network_layer(datalink, buf)
    except (dpkt.UnpackError, IndexError, ValueError, struct.error):
        return None
    if l3 is None:
        return None

    if isinstance(l3, dpkt.ip.IP) and l3.p == dpkt.ip.IP_PROTO_UDP:
        udp = l3.data
    elif isinstance(l3, dpkt.ip6.IP6) and l3.nxt == dpkt.ip.IP_PROTO_UDP:
        udp = l3.data
    else:
        return None

    if not isinstance(udp, dpkt.udp.UDP):
        return None
    return bytes(udp.data)


def _network_layer(datalink: int, buf: bytes):
    if datalink == _DLT_EN10MB:
        eth = dpkt.ethernet.Ethernet(buf)
        # dpkt already unwraps 802.1Q tags into eth.data
        return eth.data if isinstance(eth.data, (dpkt.ip.IP, dpkt.ip6.IP6)) else None

    if datalink in (_DLT_NULL, _DLT_LOOP):
        loop = dpkt.loopback.Loopback(buf)
        return loop.data if isinstance(loop.data, (dpkt.ip.IP, dpkt.ip6.IP6)) else None

    if datalink == _DLT_LINUX_SLL:
        sll = dpkt.sll.SLL(buf)
        return sll.data if isinstance(sll.data, (dpkt.ip.IP, dpkt.ip6.IP6)) else None

    if datalink in _DLT_RAW:
        if not buf:
            return None
        version = buf[0] >> 4
        if version == 4:
            return dpkt.ip.IP(buf)
        if version == 6:
            return dpkt.ip6.IP6(buf)
        return None

    return None
