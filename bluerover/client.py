"""
BlueRover API client.

This module provides signed one-shot GET requests and long-lived,
automatically reconnecting event streams against the BlueRover API.
"""

import logging
import threading
from typing import Any, Callable, List, Mapping, Optional, Union
from urllib.parse import quote, urlencode

import requests

from .constants import (
    DEFAULT_CONFIG,
    HEADER_AUTHORIZATION,
    NUMERIC_CONFIG_KEYS,
    URI_COMPONENT_SAFE,
)
from .credentials import Credentials
from .exceptions import (
    ConfigurationError,
    TransportError,
    UnsupportedOperationError,
)
from .signer import sign
from .stream import ChunkHandler, ReconnectReason, StreamConfig, StreamSession

logger = logging.getLogger(__name__)


def build_query(params: Optional[Mapping[str, Any]]) -> str:
    """
    Encode parameters sorted by key as a query string.

    Returns:
        ``?k1=v1&k2=v2`` or an empty string when there are no parameters
    """
    if not params:
        return ''
    items = sorted(params.items())
    return '?' + urlencode(items, quote_via=quote, safe=URI_COMPONENT_SAFE)


class BlueRoverClient:
    """
    Client for the BlueRover API.

    Credentials are held as an immutable snapshot. ``set_credentials``
    swaps the snapshot atomically; requests already in flight keep the
    snapshot they started with.
    """

    def __init__(self, key: Union[str, bytes], token: str, base_url: str, **config):
        """
        Initialize BlueRover client.

        Args:
            key: HMAC secret key
            token: API token sent in the Authorization header
            base_url: Base URL for HTTP requests
            **config: Configuration options (timeout, connect_timeout,
                idle_timeout, reconnect_delay_on_close,
                reconnect_delay_on_error, stream_path)

        Raises:
            InvalidArgumentError: If key, token or base_url is empty
            ConfigurationError: If a config value is invalid
        """
        self._credentials = Credentials.create(key, token, base_url)
        self._lock = threading.Lock()

        # Merge default config with user overrides
        self.config = {**DEFAULT_CONFIG, **config}
        self._validate_config()

        self.session = requests.Session()
        self._streams: List[StreamSession] = []

    def _validate_config(self):
        """Validate client configuration."""
        for name in NUMERIC_CONFIG_KEYS:
            value = self.config[name]
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
                raise ConfigurationError(f"{name} must be a positive number")

        if not self.config['stream_path']:
            raise ConfigurationError("stream_path cannot be empty")

    @property
    def credentials(self) -> Credentials:
        return self._credentials

    def set_credentials(self, credentials: Union[Credentials, Mapping[str, Any]]):
        """
        Replace the active credentials.

        Args:
            credentials: A Credentials instance or a mapping with
                ``key``, ``token`` and ``baseUrl`` (or ``base_url``)

        Raises:
            InvalidArgumentError: If any field is missing or empty; the
                current credentials are left untouched
        """
        if isinstance(credentials, Credentials):
            snapshot = Credentials.create(
                credentials.key, credentials.token, credentials.base_url
            )
        else:
            snapshot = Credentials.from_mapping(credentials)

        with self._lock:
            self._credentials = snapshot
        logger.info("Credentials replaced for %s", snapshot.base_url)

    def with_credentials(self, credentials: Union[Credentials, Mapping[str, Any]]) -> "BlueRoverClient":
        """Return a new client bound to ``credentials`` with the same config."""
        if not isinstance(credentials, Credentials):
            credentials = Credentials.from_mapping(credentials)
        return BlueRoverClient(
            credentials.key, credentials.token, credentials.base_url, **self.config
        )

    def sign(self, method: str, url: str, params: Optional[Mapping[str, Any]] = None) -> str:
        """Sign a request with the current key."""
        return sign(self.credentials.key, method, url, params)

    def call(
        self,
        relative_path: str,
        params: Optional[Mapping[str, Any]] = None,
        callback: Optional[Callable[[str], None]] = None,
        post: bool = False
    ) -> str:
        """
        Make a signed GET request and return the full response body.

        Args:
            relative_path: Path appended to the base URL
            params: Query parameters
            callback: Invoked once with the response body
            post: POST is not supported by the API

        Returns:
            Response body decoded as UTF-8

        Raises:
            UnsupportedOperationError: If post is True
            TransportError: If the request fails
        """
        if post:
            raise UnsupportedOperationError("BlueRover API: POST is not supported yet.")

        params = params or {}
        credentials = self.credentials
        url = credentials.base_url + relative_path
        signature = sign(credentials.key, 'GET', url, params)
        headers = {HEADER_AUTHORIZATION: credentials.authorization_header(signature)}

        try:
            response = self.session.get(
                url + build_query(params),
                headers=headers,
                timeout=self.config['timeout']
            )
        except requests.RequestException as e:
            raise TransportError(f"HTTP request failed: {e}") from e

        body = response.content.decode('utf-8', errors='replace')
        if callback is not None:
            callback(body)
        return body

    def stream(
        self,
        handler: Optional[ChunkHandler] = None,
        relative_path: Optional[str] = None,
        on_reconnect: Optional[Callable[[ReconnectReason], None]] = None,
        scheduler: Optional[Callable] = None
    ) -> StreamSession:
        """
        Start a self-healing stream and return it without waiting.

        Args:
            handler: Called with every received chunk (bytes)
            relative_path: Stream path, ``stream_path`` from config by default
            on_reconnect: Called with the ReconnectReason before each reconnect
            scheduler: Override for deferring reconnect attempts

        Returns:
            The running StreamSession; call ``stop()`` on it to end streaming
        """
        config = StreamConfig(
            handler=handler or (lambda chunk: None),
            relative_path=relative_path or self.config['stream_path'],
            idle_timeout=self.config['idle_timeout'],
            reconnect_delay_on_close=self.config['reconnect_delay_on_close'],
            reconnect_delay_on_error=self.config['reconnect_delay_on_error'],
            connect_timeout=self.config['connect_timeout'],
            on_reconnect=on_reconnect,
        )
        session = StreamSession(lambda: self.credentials, config, scheduler=scheduler)
        self._streams.append(session)
        return session.start()

    def close(self):
        """Stop all streams and close the HTTP session."""
        for stream in self._streams:
            stream.stop()
        self._streams.clear()
        if self.session:
            self.session.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
