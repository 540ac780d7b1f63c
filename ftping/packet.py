"""ICMP echo packets, ICMP headers and IPv4 headers on the wire."""

from __future__ import annotations

import ipaddress
import struct
from dataclasses import dataclass

ICMP_ECHOREPLY = 0
ICMP_ECHO = 8
ICMP_TIME_EXCEEDED = 11

ICMP_HEADER_SIZE = 8
IP_HEADER_SIZE = 20
PACKET_SIZE = 64
DATA_SIZE = PACKET_SIZE - ICMP_HEADER_SIZE
PAYLOAD_SIZE = PACKET_SIZE - ICMP_HEADER_SIZE - 16
PAYLOAD = b"ftping echo request payload".ljust(PAYLOAD_SIZE, b".")

# Identifier, sequence and timestamps travel in little-endian (host) order;
# the checksum is laid down in network order, which gives the same bytes.
_ECHO_LAYOUT = struct.Struct("<BBHHHQQ")
_TIMESTAMP_OFFSET = ICMP_HEADER_SIZE
_PAYLOAD_OFFSET = ICMP_HEADER_SIZE + 16


def checksum(data: bytes) -> int:
    """Return the 16-bit one's complement Internet checksum of ``data``."""
    if len(data) % 2:
        data = bytes(data) + b"\x00"
    total = sum(word for (word,) in struct.iter_unpack("!H", data))
    while total >> 16:
        total = (total & 0xFFFF) + (total >> 16)
    return ~total & 0xFFFF


@dataclass
class ICMPHeader:
    """The fixed eight-byte ICMP header of an echo message."""

    icmp_type: int
    code: int
    checksum: int
    ident: int
    sequence: int

    @classmethod
    def from_bytes(cls, data: bytes) -> ICMPHeader:
        if len(data) < ICMP_HEADER_SIZE:
            raise ValueError(
                f"ICMP header needs {ICMP_HEADER_SIZE} bytes, got {len(data)}"
            )
        ident, sequence = struct.unpack_from("<HH", data, 4)
        return cls(
            icmp_type=data[0],
            code=data[1],
            checksum=int.from_bytes(data[2:4], "big"),
            ident=ident,
            sequence=sequence,
        )


@dataclass
class EchoPacket:
    """A 64-byte echo message carrying the time it was sent."""

    ident: int
    sequence: int
    seconds: int = 0
    microseconds: int = 0
    payload: bytes = PAYLOAD
    icmp_type: int = ICMP_ECHO
    code: int = 0

    def to_bytes(self) -> bytes:
        """Serialise the packet with a freshly computed checksum."""
        if len(self.payload) > PAYLOAD_SIZE:
            raise ValueError(
                f"payload holds at most {PAYLOAD_SIZE} bytes, got {len(self.payload)}"
            )
        raw = bytearray(
            _ECHO_LAYOUT.pack(
                self.icmp_type,
                self.code,
                0,
                self.ident & 0xFFFF,
                self.sequence & 0xFFFF,
                self.seconds,
                self.microseconds,
            )
        )
        raw += self.payload.ljust(PAYLOAD_SIZE, b"\x00")
        raw[2:4] = checksum(bytes(raw)).to_bytes(2, "big")
        return bytes(raw)

    @classmethod
    def from_bytes(cls, data: bytes) -> EchoPacket:
        if len(data) < _PAYLOAD_OFFSET:
            raise ValueError(
                f"echo packet needs at least {_PAYLOAD_OFFSET} bytes, got {len(data)}"
            )
        header = ICMPHeader.from_bytes(data)
        seconds, microseconds = struct.unpack_from("<QQ", data, _TIMESTAMP_OFFSET)
        return cls(
            ident=header.ident,
            sequence=header.sequence,
            seconds=seconds,
            microseconds=microseconds,
            payload=bytes(data[_PAYLOAD_OFFSET:PACKET_SIZE]),
            icmp_type=header.icmp_type,
            code=header.code,
        )


@dataclass
class IPHeader:
    """An IPv4 header together with the raw bytes it was read from."""

    version: int
    ihl: int
    tos: int
    total_length: int
    ident: int
    flags: int
    fragment_offset: int
    ttl: int
    protocol: int
    checksum: int
    source: str
    destination: str
    raw: bytes

    @property
    def header_length(self) -> int:
        """Length of the header in bytes, options included."""
        return self.ihl * 4

    @classmethod
    def from_bytes(cls, data: bytes) -> IPHeader:
        if len(data) < IP_HEADER_SIZE:
            raise ValueError(
                f"IP header needs {IP_HEADER_SIZE} bytes, got {len(data)}"
            )
        ihl = data[0] & 0x0F
        length = ihl * 4
        if length < IP_HEADER_SIZE or len(data) < length:
            raise ValueError(f"invalid IP header length {length}")
        total_length, ident, frag_off, check = struct.unpack_from("!HHHxxH", data, 2)
        return cls(
            version=data[0] >> 4,
            ihl=ihl,
            tos=data[1],
            total_length=total_length,
            ident=ident,
            flags=(frag_off & 0xE000) >> 13,
            fragment_offset=frag_off & 0x1FFF,
            ttl=data[8],
            protocol=data[9],
            checksum=check,
            source=str(ipaddress.IPv4Address(bytes(data[12:16]))),
            destination=str(ipaddress.IPv4Address(bytes(data[16:20]))),
            raw=bytes(data[:length]),
        )