"""asyncio TCP server and connections, UDP, timers, and a small HTTP/1.x server and client."""

__version__ = "0.1.0"
__all__ = [
    "common",
    "radix_tree",
    "response",
    "request",
    "timer",
    "udp",
    "tcp_connection",
    "tcp_server",
    "http_server",
    "http_client",
]