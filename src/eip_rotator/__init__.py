"""In-process supervisor that rotates UCloud elastic IPs on a schedule."""

__version__ = "0.1.0"
