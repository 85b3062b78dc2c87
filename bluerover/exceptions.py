"""
Custom exceptions for the BlueRover API client.
"""


class BlueRoverError(Exception):
    """Base exception for BlueRover client errors."""
    pass


class InvalidArgumentError(BlueRoverError, ValueError):
    """Raised when key, token or base URL is missing or empty."""
    pass


class UnsupportedOperationError(BlueRoverError, NotImplementedError):
    """Raised when an operation the API does not support is requested."""
    pass


class ConfigurationError(BlueRoverError):
    """Raised when client configuration is invalid."""
    pass


class TransportError(BlueRoverError):
    """Raised when a one-shot HTTP request fails."""
    pass
