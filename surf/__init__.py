"""Discover unreachable-but-resolvable hosts and split them into internal and external SSRF candidates."""

__version__ = "0.1.0"
