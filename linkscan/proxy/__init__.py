"""HTTP proxy that holds the scanning provider's API key."""

from .server import ScanProxyServer

__all__ = ["ScanProxyServer"]
