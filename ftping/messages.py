"""Text of the lines the ping command prints, and round-trip statistics."""

from __future__ import annotations

import math
from dataclasses import dataclass

from ftping.packet import DATA_SIZE, PACKET_SIZE, ICMPHeader, IPHeader

FLOAT_MAX = 3.402823466e38


@dataclass
class Timings:
    """Running round-trip statistics, kept in one pass (Welford)."""

    min_time: float = FLOAT_MAX
    max_time: float = 0.0
    sum_times: float = 0.0
    mean_time: float = 0.0
    square_dist: float = 0.0
    count: int = 0

    def add(self, time_ms: float) -> None:
        """Record one round-trip time in milliseconds."""
        self.count += 1
        self.max_time = max(self.max_time, time_ms)
        self.min_time = min(self.min_time, time_ms)
        self.sum_times += time_ms
        delta = time_ms - self.mean_time
        self.mean_time += delta / self.count
        self.square_dist += delta * (time_ms - self.mean_time)

    def average(self) -> float:
        """Mean round-trip time."""
        if not self.count:
            raise ValueError("no round-trip times recorded")
        return self.sum_times / self.count

    def stddev(self) -> float:
        """Population standard deviation of the round-trip times."""
        if not self.count:
            raise ValueError("no round-trip times recorded")
        return math.sqrt(self.square_dist / self.count)


def format_timestamp(when: float) -> str:
    """Return the ``[seconds.microseconds] `` prefix for a time since the epoch."""
    seconds, microseconds = divmod(round(when * 1_000_000), 1_000_000)
    return f"[{seconds}.{microseconds}] "


def format_header(dest: str, ip: str, ident: int, verbose: bool) -> str:
    line = f"PING {dest} ({ip}): {DATA_SIZE} data bytes"
    if verbose:
        line += f", id 0x{ident:04x} = {ident}"
    return line


def format_response_line(size: int, ip: str, sequence: int, ttl: int, time_ms: float) -> str:
    return f"{size} bytes from {ip}: icmp_seq={sequence} ttl={ttl} time={time_ms:.3f} ms "


def format_ttl_exceeded_line(size: int, source: str) -> str:
    return f"{size} bytes from {source} ({source}): Time to live exceeded"


def format_verbose_ttl(inner_ip: IPHeader, inner_icmp: ICMPHeader) -> str:
    """Describe the returned original datagram of a time-exceeded message."""
    raw = inner_ip.raw
    dump = "".join(f"{raw[pos]:02x}{raw[pos + 1]:02x} " for pos in range(0, len(raw) - 1, 2))
    fields = (
        f" {inner_ip.version:1x}  {inner_ip.ihl:1x}  {inner_ip.tos:02x}"
        f" {inner_ip.total_length:04x} {inner_ip.ident:04x}"
        f"   {inner_ip.flags:1x} {inner_ip.fragment_offset:04x}"
        f"  {inner_ip.ttl:02x}  {inner_ip.protocol:02x} {inner_ip.checksum:04x} "
        f" {inner_ip.source} {inner_ip.destination}"
    )
    icmp = (
        f"ICMP: type {inner_icmp.icmp_type}, code {inner_icmp.code},"
        f" size {PACKET_SIZE}, id 0x{inner_icmp.ident:04x},"
        f" seq 0x{inner_icmp.sequence:04x}"
    )
    return "\n".join(
        [
            "IP Hdr Dump: ",
            " " + dump,
            "Vr HL TOS  Len   ID Flg  off TTL Pro  cks      Src\tDst\tData",
            fields,
            icmp,
        ]
    )


def format_summary(dest: str, transmitted: int, received: int, timings: Timings) -> str:
    loss = 100 - (received / transmitted) * 100 if transmitted else 0.0
    lines = [
        f"--- {dest} ping statistics ---",
        f"{transmitted} packets transmitted, {received} packets received,"
        f" {loss:.0f}% packet loss",
    ]
    if received:
        lines.append(
            f"round-trip min/avg/max/stddev = {timings.min_time:.3f}"
            f"/{timings.sum_times / received:.3f}"
            f"/{timings.max_time:.3f}"
            f"/{math.sqrt(timings.square_dist / received):.3f} ms"
        )
    return "\n".join(lines)