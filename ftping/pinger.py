"""Sending echo requests, reading the replies and keeping the run's counters."""

from __future__ import annotations

import socket
import sys
import time
from typing import TextIO

from ftping.messages import (
    Timings,
    format_header,
    format_response_line,
    format_summary,
    format_timestamp,
    format_ttl_exceeded_line,
    format_verbose_ttl,
)
from ftping.options import Arguments
from ftping.packet import (
    ICMP_ECHOREPLY,
    ICMP_HEADER_SIZE,
    ICMP_TIME_EXCEEDED,
    IP_HEADER_SIZE,
    PACKET_SIZE,
    EchoPacket,
    ICMPHeader,
    IPHeader,
)

BUFFER_LEN = 1024
_MIN_WAIT = 0.001


class PingError(Exception):
    """A system call failed and the run cannot go on."""


def resolve(host: str) -> str:
    """Return the IPv4 address ``host`` resolves to, as dotted text."""
    try:
        results = socket.getaddrinfo(
            host, None, socket.AF_INET, socket.SOCK_RAW, socket.IPPROTO_ICMP
        )
    except socket.gaierror as exc:
        raise PingError(f"ft_ping: {host}: {exc.strerror or exc}") from exc
    if not results:
        raise PingError(f"ft_ping: {host}: no address associated with name")
    return results[0][4][0]


def _split_time(when: float) -> tuple[int, int]:
    seconds, microseconds = divmod(round(when * 1_000_000), 1_000_000)
    return seconds, microseconds


class Pinger:
    """One ping run against one destination."""

    def __init__(self, args: Arguments, out: TextIO | None = None) -> None:
        self.args = args
        self.out = out if out is not None else sys.stdout
        self.ident = _process_ident()
        self.sequence = 0
        self.received = 0
        self.ttl_received = 0
        self.timings = Timings()
        self.ip: str | None = None
        self.sock: socket.socket | None = None

    def _write(self, text: str) -> None:
        self.out.write(text + "\n")
        self.out.flush()

    def open(self) -> None:
        """Resolve the destination and open the raw ICMP socket."""
        self.ip = resolve(self.args.dest)
        try:
            sock = socket.socket(socket.AF_INET, socket.SOCK_RAW, socket.IPPROTO_ICMP)
        except OSError as exc:
            raise PingError(f"socket: {exc.strerror or exc}") from exc
        try:
            sock.setsockopt(socket.IPPROTO_IP, socket.IP_TTL, self.args.ttl)
        except OSError as exc:
            sock.close()
            raise PingError(f"setsockopt ttl: {exc.strerror or exc}") from exc
        sock.settimeout(self.args.timeout)
        self.sock = sock

    def close(self) -> None:
        """Close the socket if it is open."""
        if self.sock is not None:
            self.sock.close()
            self.sock = None

    def __enter__(self) -> Pinger:
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def next_packet(self, now: float) -> bytes:
        """Build the next echo request stamped with ``now`` and advance the sequence."""
        seconds, microseconds = _split_time(now)
        packet = EchoPacket(
            ident=self.ident,
            sequence=self.sequence,
            seconds=seconds,
            microseconds=microseconds,
        )
        self.sequence += 1
        return packet.to_bytes()

    def send(self) -> None:
        """Send one echo request to the destination."""
        if self.sock is None or self.ip is None:
            raise PingError("sendto: socket is not open")
        data = self.next_packet(time.time())
        try:
            self.sock.sendto(data, (self.ip, 0))
        except OSError as exc:
            raise PingError(f"sendto: {exc.strerror or exc}") from exc

    def handle_packet(self, data: bytes, now: float) -> bool:
        """Process one received IP datagram; return whether it was ours."""
        try:
            ip_header = IPHeader.from_bytes(data)
            icmp_data = data[ip_header.header_length:]
            header = ICMPHeader.from_bytes(icmp_data)
        except ValueError:
            return False
        if header.icmp_type == ICMP_TIME_EXCEEDED:
            return self._handle_time_exceeded(ip_header, icmp_data, now)
        if header.icmp_type == ICMP_ECHOREPLY and header.ident == self.ident:
            return self._handle_reply(ip_header, icmp_data, now)
        return False

    def _handle_time_exceeded(self, ip_header: IPHeader, icmp_data: bytes, now: float) -> bool:
        try:
            inner_ip = IPHeader.from_bytes(icmp_data[ICMP_HEADER_SIZE:])
            inner_icmp = ICMPHeader.from_bytes(
                icmp_data[ICMP_HEADER_SIZE + IP_HEADER_SIZE:]
            )
        except ValueError:
            return False
        if inner_icmp.ident != self.ident:
            return False
        self.ttl_received += 1
        prefix = format_timestamp(now) if self.args.print_timestamps else ""
        size = ip_header.total_length - ip_header.header_length
        self._write(prefix + format_ttl_exceeded_line(size, ip_header.source))
        if self.args.verbose:
            self._write(format_verbose_ttl(inner_ip, inner_icmp))
        return True

    def _handle_reply(self, ip_header: IPHeader, icmp_data: bytes, now: float) -> bool:
        try:
            packet = EchoPacket.from_bytes(icmp_data)
        except ValueError:
            return False
        self.received += 1
        seconds, microseconds = _split_time(now)
        time_ms = (seconds - packet.seconds) * 1000 + (microseconds - packet.microseconds) / 1000
        self.timings.add(time_ms)
        if self.args.quiet:
            return True
        prefix = format_timestamp(now) if self.args.print_timestamps else ""
        self._write(
            prefix
            + format_response_line(PACKET_SIZE, self.ip or "", packet.sequence, ip_header.ttl, time_ms)
        )
        return True

    def receive(self) -> bool:
        """Wait for one datagram; return False if the socket timed out."""
        if self.sock is None:
            raise PingError("recvfrom: socket is not open")
        while True:
            try:
                data = self.sock.recv(BUFFER_LEN)
            except (socket.timeout, BlockingIOError):
                return False
            except InterruptedError:
                continue
            except OSError as exc:
                raise PingError(f"recvfrom: {exc.strerror or exc}") from exc
            break
        self.handle_packet(data, time.time())
        return True

    def finished(self, timed_out: bool) -> bool:
        """Whether the run is over after the last wait."""
        count = self.args.count
        return (
            self.received >= count
            or self.ttl_received >= count
            or (timed_out and self.sequence >= count)
        )

    def summary(self) -> str:
        """The statistics printed at the end of the run."""
        return format_summary(self.args.dest, self.sequence, self.received, self.timings)

    def run(self) -> None:
        """Ping until the count is reached, the wait times out or the user interrupts."""
        if self.sock is None or self.ip is None:
            raise PingError("socket is not open")
        self._write(format_header(self.args.dest, self.ip, self.ident, self.args.verbose))
        interval = self.args.interval_seconds
        timeout = self.args.timeout
        try:
            self.send()
            now = time.monotonic()
            next_send = now + interval
            deadline = now + timeout
            while True:
                now = time.monotonic()
                sending = self.sequence < self.args.count
                if sending and now >= next_send:
                    self.send()
                    next_send += interval
                    deadline = now + timeout
                    continue
                wait_until = min(deadline, next_send) if sending else deadline
                self.sock.settimeout(max(wait_until - now, _MIN_WAIT))
                timed_out = False
                if self.receive():
                    deadline = time.monotonic() + timeout
                elif time.monotonic() >= deadline:
                    timed_out = True
                if self.finished(timed_out):
                    break
        except KeyboardInterrupt:
            pass
        self._write(self.summary())


def _process_ident() -> int:
    import os

    return os.getpid() & 0xFFFF