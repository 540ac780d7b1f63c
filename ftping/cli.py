"""The ping command."""

from __future__ import annotations

import os
import sys

from ftping.options import InfoRequest, UsageError, parse_arguments
from ftping.pinger import Pinger, PingError

SUPERUSER_NEEDED = "Superuser privileges needed to run the program."


def _usage_error(message: str) -> int:
    print(f"ft_ping: usage error: {message}")
    print("Try 'ft_ping -h' or 'ft_ping -?' for more information.")
    return 1


def _is_superuser() -> bool:
    getuid = getattr(os, "getuid", None)
    return getuid is not None and getuid() == 0


def main(argv: list[str] | None = None) -> int:
    """Run the command; return the exit status."""
    if argv is None:
        argv = sys.argv[1:]
    try:
        args = parse_arguments(argv)
    except InfoRequest as request:
        if request.warning:
            print(f"ft_ping: {request.warning}", file=sys.stderr)
        text = request.text
        sys.stdout.write(text if text.endswith("\n") else text + "\n")
        return 0
    except UsageError as error:
        return _usage_error(error.message)
    if not _is_superuser():
        return _usage_error(SUPERUSER_NEEDED)
    try:
        with Pinger(args, sys.stdout) as pinger:
            pinger.run()
    except PingError as error:
        print(error, file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())