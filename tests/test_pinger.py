import io
import ipaddress
import socket
import struct
import time
from unittest import mock

import pytest

from ftping.messages import format_response_line, format_ttl_exceeded_line
from ftping.options import Arguments
from ftping.packet import (
    ICMP_ECHOREPLY,
    PACKET_SIZE,
    EchoPacket,
    checksum,
)
from ftping.pinger import Pinger, PingError, resolve

DEST_IP = "192.0.2.1"
LOCAL_IP = "198.51.100.7"
ROUTER_IP = "203.0.113.5"


def ip_header(src, dst, ttl, total_length):
    return struct.pack(
        "!BBHHHBBH4s4s",
        0x45,
        0,
        total_length,
        0x1234,
        0,
        ttl,
        1,
        0,
        ipaddress.IPv4Address(src).packed,
        ipaddress.IPv4Address(dst).packed,
    )


def make_reply(sent, ttl=57):
    packet = EchoPacket.from_bytes(sent)
    packet.icmp_type = ICMP_ECHOREPLY
    body = packet.to_bytes()
    return ip_header(DEST_IP, LOCAL_IP, ttl, 20 + len(body)) + body


def make_time_exceeded(sent):
    inner = ip_header(LOCAL_IP, DEST_IP, 1, 20 + len(sent)) + sent
    icmp = bytes([11, 0, 0, 0, 0, 0, 0, 0])
    return ip_header(ROUTER_IP, LOCAL_IP, 250, 20 + len(icmp) + len(inner)) + icmp + inner


def make_pinger(**kwargs):
    args = Arguments(dest="example.test", **kwargs)
    out = io.StringIO()
    pinger = Pinger(args, out)
    pinger.ip = DEST_IP
    return pinger, out


class FakeSocket:
    def __init__(self, reply=True):
        self.reply = reply
        self.sent = []
        self.queue = []
        self.timeout = None
        self.closed = False

    def sendto(self, data, address):
        self.sent.append((data, address))
        if self.reply:
            self.queue.append(make_reply(data))

    def settimeout(self, value):
        self.timeout = value

    def recv(self, size):
        if self.queue:
            return self.queue.pop(0)
        time.sleep(self.timeout)
        raise socket.timeout("timed out")

    def close(self):
        self.closed = True


def test_next_packet_is_valid_echo_request():
    pinger, _ = make_pinger()
    data = pinger.next_packet(1000.25)
    assert len(data) == PACKET_SIZE
    assert checksum(data) == 0
    packet = EchoPacket.from_bytes(data)
    assert packet.ident == pinger.ident
    assert packet.sequence == 0
    assert packet.seconds == 1000
    assert packet.microseconds == 250000


def test_next_packet_advances_sequence():
    pinger, _ = make_pinger()
    first = EchoPacket.from_bytes(pinger.next_packet(1.0))
    second = EchoPacket.from_bytes(pinger.next_packet(2.0))
    assert (first.sequence, second.sequence) == (0, 1)
    assert pinger.sequence == 2


def test_echo_reply_is_printed_and_timed():
    pinger, out = make_pinger()
    sent = pinger.next_packet(1000.0)
    assert pinger.handle_packet(make_reply(sent, ttl=57), 1000.0125)
    assert pinger.received == 1
    assert out.getvalue() == format_response_line(PACKET_SIZE, DEST_IP, 0, 57, 12.5) + "\n"
    assert pinger.timings.min_time == pytest.approx(12.5)


def test_reply_with_other_ident_is_ignored():
    pinger, out = make_pinger()
    other = EchoPacket(ident=(pinger.ident + 1) & 0xFFFF, sequence=0).to_bytes()
    assert not pinger.handle_packet(make_reply(other), 5.0)
    assert pinger.received == 0
    assert out.getvalue() == ""


def test_quiet_mode_records_but_prints_nothing():
    pinger, out = make_pinger(quiet=True)
    sent = pinger.next_packet(10.0)
    pinger.handle_packet(make_reply(sent), 10.002)
    assert out.getvalue() == ""
    assert pinger.timings.count == 1


def test_timestamps_prefix_reply():
    pinger, out = make_pinger(print_timestamps=True)
    sent = pinger.next_packet(10.0)
    pinger.handle_packet(make_reply(sent), 10.5)
    assert out.getvalue().startswith("[10.500000] ")


def test_time_exceeded_line():
    pinger, out = make_pinger()
    sent = pinger.next_packet(10.0)
    data = make_time_exceeded(sent)
    assert pinger.handle_packet(data, 11.0)
    assert pinger.ttl_received == 1
    assert pinger.received == 0
    expected = format_ttl_exceeded_line(len(data) - 20, ROUTER_IP)
    assert out.getvalue() == expected + "\n"


def test_time_exceeded_verbose_dump():
    pinger, out = make_pinger(verbose=True)
    sent = pinger.next_packet(10.0)
    pinger.handle_packet(make_time_exceeded(sent), 11.0)
    text = out.getvalue()
    assert "IP Hdr Dump: " in text
    assert f"{LOCAL_IP} {DEST_IP}" in text


def test_time_exceeded_for_other_process_is_ignored():
    pinger, out = make_pinger()
    other = EchoPacket(ident=(pinger.ident + 1) & 0xFFFF, sequence=0).to_bytes()
    assert not pinger.handle_packet(make_time_exceeded(other), 1.0)
    assert pinger.ttl_received == 0
    assert out.getvalue() == ""


def test_truncated_datagram_is_ignored():
    pinger, _ = make_pinger()
    assert not pinger.handle_packet(b"\x45\x00", 1.0)


def test_finished_conditions():
    pinger, _ = make_pinger(count=2)
    assert not pinger.finished(False)
    pinger.sequence = 2
    assert not pinger.finished(False)
    assert pinger.finished(True)
    pinger.sequence = 1
    pinger.received = 2
    assert pinger.finished(False)
    pinger.received = 0
    pinger.ttl_received = 2
    assert pinger.finished(False)


def test_summary_uses_sequence_as_transmitted():
    pinger, _ = make_pinger()
    pinger.sequence = 4
    pinger.received = 4
    pinger.timings.add(1.0)
    assert pinger.summary().splitlines()[1].startswith("4 packets transmitted, 4 packets received")


def test_resolve_literal_address():
    assert resolve("127.0.0.1") == "127.0.0.1"


def test_resolve_failure():
    error = socket.gaierror(-2, "Name or service not known")
    with mock.patch("socket.getaddrinfo", side_effect=error):
        with pytest.raises(PingError, match="ft_ping: nowhere.test: Name or service not known"):
            resolve("nowhere.test")


def test_open_reports_socket_failure():
    pinger, _ = make_pinger()
    addr = [(socket.AF_INET, socket.SOCK_RAW, 1, "", (DEST_IP, 0))]
    with mock.patch("socket.getaddrinfo", return_value=addr), mock.patch(
        "socket.socket", side_effect=PermissionError(1, "Operation not permitted")
    ):
        with pytest.raises(PingError, match="socket: Operation not permitted"):
            pinger.open()


def test_send_without_socket_fails():
    pinger, _ = make_pinger()
    with pytest.raises(PingError):
        pinger.send()


def test_run_single_reply():
    pinger, out = make_pinger(count=1)
    fake = FakeSocket()
    pinger.sock = fake
    pinger.run()
    lines = out.getvalue().splitlines()
    assert lines[0].startswith(f"PING example.test ({DEST_IP})")
    assert lines[1].startswith(f"64 bytes from {DEST_IP}: icmp_seq=0")
    assert lines[2] == "--- example.test ping statistics ---"
    assert lines[3].startswith("1 packets transmitted, 1 packets received")
    assert fake.sent[0][1] == (DEST_IP, 0)


def test_run_times_out_without_replies():
    pinger, out = make_pinger(count=1, timeout=1)
    pinger.sock = FakeSocket(reply=False)
    pinger.run()
    assert pinger.received == 0
    assert pinger.sequence == 1
    assert "1 packets transmitted, 0 packets received, 100% packet loss" in out.getvalue()


def test_context_manager_closes_socket():
    pinger, _ = make_pinger()
    fake = FakeSocket()
    addr = [(socket.AF_INET, socket.SOCK_RAW, 1, "", (DEST_IP, 0))]
    fake.setsockopt = lambda *a: None
    with mock.patch("socket.getaddrinfo", return_value=addr), mock.patch(
        "socket.socket", return_value=fake
    ):
        with pinger as opened:
            assert opened.sock is fake
            assert opened.ip == DEST_IP
    assert fake.closed
    assert pinger.sock is None