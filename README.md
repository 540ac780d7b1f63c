# ftping

`ftping` sends ICMP echo requests to an IPv4 host. It prints a line for each
reply and a summary with packet loss and round-trip statistics
(min/avg/max/stddev). It also reports "Time to live exceeded" messages from
routers along the path. In verbose mode it adds a dump of the returned IP
header.

The program opens a raw ICMP socket, so it must be run as root. When it is not
run as root it prints a usage error and exits with status 1.

## Installation

```
pip install .
```

## Usage

```
sudo ftping [options] <destination>
```

`<destination>` is a DNS name or an IPv4 address. Options may come before or
after the destination. `--` ends the options.

| Option          | Meaning                                                      |
|-----------------|--------------------------------------------------------------|
| `-c <count>`    | stop after `<count>` replies; no more than `<count>` requests are sent |
| `-D`            | print a `[seconds.microseconds]` timestamp before each reply line |
| `-h` or `-?`    | print help and exit                                          |
| `-i <interval>` | seconds between sending each packet (default 1)              |
| `-q`            | quiet output: echo replies are counted but not printed       |
| `-t <ttl>`      | time to live, 1 to 255 (default 64)                          |
| `-v`            | verbose output: the request id in the header line, and an IP header dump for each time-exceeded message |
| `-V`            | print version and exit                                       |
| `-W <timeout>`  | seconds to wait for a response (default 10)                  |

The values for `-c`, `-i` and `-W` must be positive whole numbers of at most
nine digits. A value out of range, or a missing destination, prints a usage
error and exits with status 1. An unknown option prints the help text.

The run ends in any of these cases:

- the number of replies reaches the count;
- the number of time-exceeded messages reaches the count;
- all requests have been sent and no response comes within the timeout.

Ctrl+C stops the run at any time, and the summary is then printed.

Example (the times vary from run to run):

```
$ sudo ftping -c 3 localhost
PING localhost (127.0.0.1): 56 data bytes
64 bytes from 127.0.0.1: icmp_seq=0 ttl=64 time=0.052 ms
64 bytes from 127.0.0.1: icmp_seq=1 ttl=64 time=0.061 ms
64 bytes from 127.0.0.1: icmp_seq=2 ttl=64 time=0.058 ms
--- localhost ping statistics ---
3 packets transmitted, 3 packets received, 0% packet loss
round-trip min/avg/max/stddev = 0.052/0.057/0.061/0.004 ms
```

## Library use

The parts of the command can also be used from Python:

- `ftping.packet` has `EchoPacket` (with `to_bytes` and `from_bytes`),
  `ICMPHeader.from_bytes`, `IPHeader.from_bytes` and `checksum`, the Internet
  checksum.
- `ftping.options` has `parse_arguments(argv)`, which returns an `Arguments`
  value. It raises `UsageError` for a bad command line. It raises `InfoRequest`
  when help or the version is asked for. It also has `parse_count`,
  `parse_ttl` and `usage_text`.
- `ftping.messages` has the line formatters (`format_header`,
  `format_response_line`, `format_ttl_exceeded_line`, `format_verbose_ttl`,
  `format_summary`, `format_timestamp`) and `Timings`, which keeps running
  round-trip statistics with `add`, `average` and `stddev`.
- `ftping.pinger` has `resolve(host)` and `Pinger(args, out)`. `Pinger` is a
  context manager that opens the socket. `run()` pings and writes its lines to
  `out`. `next_packet(now)` builds a request without sending it, and
  `handle_packet(data, now)` processes a received datagram. Both work without a
  socket. System call failures are raised as `PingError`.
- `ftping.cli.main(argv=None)` is the command. It returns the exit status.

## Limitations

- Only IPv4 is supported; there is no IPv6.
- Raw sockets are needed, so there is no mode for unprivileged users.

## Tests

```
pip install .[test]
pytest
```