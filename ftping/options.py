"""Command-line options of the ping command."""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_INTERVAL = 1
DEFAULT_TTL = 64
DEFAULT_TIMEOUT = 10
DEFAULT_COUNT = 2**31 - 1

VERSION_TEXT = "ft_ping 1.0 based on ping build from inetutils 2.0"
DESTINATION_REQUIRED = "Destination address required"
COUNT_RANGE = "Out of range: 0 < integer value < 999999999"
TTL_RANGE = "Out of range: 0 < integer value < 255"

_TAKES_VALUE = frozenset("citW")
_OPTIONS = frozenset("cDh?iqtvVW")
_DIGITS = frozenset("0123456789")


class UsageError(Exception):
    """A command line that cannot be used."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InfoRequest(Exception):
    """The command line asks for text to be shown instead of a run."""

    def __init__(self, text: str, warning: str | None = None) -> None:
        super().__init__(text)
        self.text = text
        self.warning = warning


@dataclass
class Arguments:
    """Settings for one ping run."""

    dest: str = ""
    verbose: bool = False
    print_timestamps: bool = False
    interval: bool = False
    quiet: bool = False
    count: int = DEFAULT_COUNT
    interval_seconds: int = DEFAULT_INTERVAL
    timeout: int = DEFAULT_TIMEOUT
    ttl: int = DEFAULT_TTL


def usage_text() -> str:
    """Return the help text."""
    return (
        "Usage\n"
        "  ./ft_ping [options] <destination>\n\n"
        "Options:\n"
        "  <destination>      dns name or ip address\n"
        "  -c <count>         stop after <count> replies\n"
        "  -D                 print timestamps\n"
        "  -h or -?           print help and exit\n"
        "  -i <interval>      seconds between sending each packet\n"
        "  -q                 quiet output\n"
        "  -t <ttl>           define time to live\n"
        "  -v                 verbose output\n"
        "  -V                 print version and exit\n"
        "  -W <timeout>       time to wait for response\n"
    )


def _is_digits(text: str) -> bool:
    return all(char in _DIGITS for char in text)


def parse_count(text: str) -> int:
    """Parse a positive integer of at most nine digits."""
    if len(text) > 9 or not _is_digits(text) or not text or int(text) == 0:
        raise UsageError(COUNT_RANGE)
    return int(text)


def parse_ttl(text: str) -> int:
    """Parse a time to live between 1 and 255."""
    if len(text) > 3 or not _is_digits(text) or not text:
        raise UsageError(TTL_RANGE)
    value = int(text)
    if value == 0 or value > 255:
        raise UsageError(TTL_RANGE)
    return value


def _apply(args: Arguments, option: str, value: str | None) -> None:
    if option == "c":
        args.count = parse_count(value)
    elif option == "D":
        args.print_timestamps = True
    elif option in ("h", "?"):
        raise InfoRequest(usage_text())
    elif option == "i":
        args.interval = True
        args.interval_seconds = parse_count(value)
    elif option == "q":
        args.quiet = True
    elif option == "t":
        args.ttl = parse_ttl(value)
    elif option == "v":
        args.verbose = True
    elif option == "V":
        raise InfoRequest(VERSION_TEXT)
    elif option == "W":
        args.timeout = parse_count(value)


def parse_arguments(argv: list[str]) -> Arguments:
    """Parse the arguments that follow the program name.

    Options are handled in the order they appear and may be mixed with the
    destination; ``--`` ends the options.
    """
    if not argv:
        raise UsageError(DESTINATION_REQUIRED)
    args = Arguments()
    operands: list[str] = []
    items = iter(argv)
    for item in items:
        if item == "--":
            operands.extend(items)
            break
        if len(item) < 2 or not item.startswith("-"):
            operands.append(item)
            continue
        position = 1
        while position < len(item):
            option = item[position]
            position += 1
            if option not in _OPTIONS:
                raise InfoRequest(usage_text(), f"invalid option -- '{option}'")
            if option in _TAKES_VALUE:
                value = item[position:] or next(items, None)
                if value is None:
                    raise InfoRequest(
                        usage_text(), f"option requires an argument -- '{option}'"
                    )
                _apply(args, option, value)
                break
            _apply(args, option, None)
    if not operands:
        raise UsageError(DESTINATION_REQUIRED)
    args.dest = operands[0]
    return args