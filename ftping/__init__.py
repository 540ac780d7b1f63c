"""Send ICMP echo requests over raw sockets and report round-trip statistics."""

__version__ = "1.0.0"