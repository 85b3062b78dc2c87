"""
BlueRover API Client

A Python client for the BlueRover API: signed one-shot requests and
self-healing event streams.

Example usage:
    from bluerover import BlueRoverClient

    client = BlueRoverClient("your-key", "your-token", "http://api.bluerover.us")
    devices = client.call("/device")
    client.stream(lambda chunk: print(chunk.decode("utf-8")))
"""

from .client import BlueRoverClient, build_query
from .credentials import Credentials
from .exceptions import (
    BlueRoverError,
    InvalidArgumentError,
    UnsupportedOperationError,
    ConfigurationError,
    TransportError
)
from .signer import sign, base_string, normalize_url
from .stream import ReconnectReason, StreamConfig, StreamSession
from .constants import (
    DEFAULT_CONFIG,
    DEFAULT_STREAM_PATH
)

__version__ = "1.0.0"
__all__ = [
    "BlueRoverClient",
    "Credentials",
    "StreamSession",
    "StreamConfig",
    "ReconnectReason",
    "BlueRoverError",
    "InvalidArgumentError",
    "UnsupportedOperationError",
    "ConfigurationError",
    "TransportError",
    "sign",
    "base_string",
    "normalize_url",
    "build_query",
    "DEFAULT_CONFIG",
    "DEFAULT_STREAM_PATH"
]
