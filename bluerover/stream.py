"""
Self-healing event stream for the BlueRover API.

A StreamSession keeps one logical streaming connection open for as long as
it runs. Each attempt is signed with the credentials current at that time.
When the connection times out, closes, or cannot be established, the
session tears it down and schedules a new attempt after a fixed delay:

    TIMEOUT, CLOSED -> reconnect_delay_on_close
    ERROR           -> reconnect_delay_on_error

There is no retry limit and no backoff growth. The only way to end a
session is ``stop()``.
"""

import enum
import logging
import socket
import threading
from dataclasses import dataclass
from typing import Callable, Optional

import requests
from urllib3.exceptions import ReadTimeoutError

from .constants import (
    DEFAULT_CONFIG,
    DEFAULT_STREAM_PATH,
    HEADER_AUTHORIZATION,
    HEADER_CONNECTION,
)
from .credentials import Credentials
from .signer import sign

logger = logging.getLogger(__name__)

ChunkHandler = Callable[[bytes], None]


class ReconnectReason(enum.Enum):
    TIMEOUT = "timeout"
    CLOSED = "closed"
    ERROR = "error"


@dataclass
class StreamConfig:
    """Settings reused verbatim by every connection attempt of a session."""

    handler: ChunkHandler
    relative_path: str = DEFAULT_STREAM_PATH
    idle_timeout: float = DEFAULT_CONFIG['idle_timeout']
    reconnect_delay_on_close: float = DEFAULT_CONFIG['reconnect_delay_on_close']
    reconnect_delay_on_error: float = DEFAULT_CONFIG['reconnect_delay_on_error']
    connect_timeout: float = DEFAULT_CONFIG['connect_timeout']
    on_reconnect: Optional[Callable[[ReconnectReason], None]] = None

    def delay_for(self, reason: ReconnectReason) -> float:
        if reason is ReconnectReason.ERROR:
            return self.reconnect_delay_on_error
        return self.reconnect_delay_on_close


def timer_scheduler(delay: float, fn: Callable[[], None]) -> threading.Timer:
    """Run ``fn`` on a daemon timer thread after ``delay`` seconds."""
    timer = threading.Timer(delay, fn)
    timer.daemon = True
    timer.start()
    return timer


def _is_read_timeout(exc: requests.RequestException) -> bool:
    # iter_content re-raises urllib3's ReadTimeoutError as ConnectionError
    if isinstance(exc, requests.Timeout):
        return True
    return any(isinstance(arg, ReadTimeoutError) for arg in exc.args)


def _response_socket(response: requests.Response):
    """Return the socket a streaming response reads from, if still attached."""
    raw = response.raw
    connection = getattr(raw, 'connection', None) or getattr(raw, '_connection', None)
    sock = getattr(connection, 'sock', None)
    if sock is None:
        # http.client keeps the socket behind its buffered reader
        reader = getattr(getattr(raw, '_fp', None), 'fp', None)
        sock = getattr(getattr(reader, 'raw', None), '_sock', None)
    return sock


def _interrupt(response: requests.Response):
    """
    Wake a reader blocked on ``response`` from another thread.

    Shutting the socket down makes the pending read return end-of-stream
    at once. Closing the response instead would wait for that read to
    finish, up to the idle timeout.
    """
    sock = _response_socket(response)
    if sock is None:
        return
    try:
        sock.shutdown(socket.SHUT_RDWR)
    except OSError as e:
        logger.debug("Stream socket already shut down: %s", e)


class StreamSession:
    """
    One long-lived streaming connection with automatic reconnection.

    Chunks are delivered to ``config.handler`` in the order they arrive
    within a connection. Across a reconnect there is a gap, signalled to
    ``config.on_reconnect`` if set.
    """

    def __init__(
        self,
        credentials_provider: Callable[[], Credentials],
        config: StreamConfig,
        session: Optional[requests.Session] = None,
        scheduler: Optional[Callable] = None
    ):
        """
        Initialize a stream session.

        Args:
            credentials_provider: Returns the credentials to sign the next attempt with
            config: Stream settings
            session: HTTP session to stream over; if omitted the stream
                creates its own and closes it on ``stop()``
            scheduler: ``scheduler(delay, fn)`` arranges for ``fn`` to run
                after ``delay`` seconds and returns a handle with
                ``cancel()``; defaults to a daemon timer. It is never
                called with the session lock held, so it may also run
                ``fn`` inline.
        """
        self.credentials_provider = credentials_provider
        self.config = config
        self._owns_session = session is None
        self.session = session or requests.Session()
        self.scheduler = scheduler or timer_scheduler
        self.attempts = 0

        self._lock = threading.Lock()
        self._started = False
        self._stopped = threading.Event()
        self._pending = None
        self._response = None

    @property
    def running(self) -> bool:
        return self._started and not self._stopped.is_set()

    def start(self) -> "StreamSession":
        """Schedule the first connection attempt and return immediately."""
        with self._lock:
            if self._started or self._stopped.is_set():
                return self
            self._started = True
        logger.info("Starting stream on %s", self.config.relative_path)
        self._track(self.scheduler(0, self.connect))
        return self

    def stop(self):
        """
        Stop the session: cancel any pending attempt and end the live connection.

        Returns without waiting for a blocked read. The streaming thread
        closes the response itself once its read is interrupted.
        """
        with self._lock:
            self._stopped.set()
            pending, self._pending = self._pending, None
            response = self._response
        if pending is not None:
            pending.cancel()
        if response is not None:
            _interrupt(response)
        if self._owns_session:
            self.session.close()
        logger.info("Stream on %s stopped", self.config.relative_path)

    def connect(self) -> Optional[ReconnectReason]:
        """
        Run one connection attempt until it ends, then schedule the next.

        Returns:
            Why the attempt ended, or None if the session was stopped
        """
        if self._stopped.is_set():
            return None

        self.attempts += 1
        response = self._open()
        if response is None:
            reason = ReconnectReason.ERROR
        else:
            try:
                reason = self._consume(response)
            finally:
                self._release(response)

        if self._stopped.is_set():
            return None
        self._schedule(reason)
        return reason

    def _open(self) -> Optional[requests.Response]:
        """Connecting: sign and send the stream request."""
        credentials = self.credentials_provider()
        url = credentials.base_url + self.config.relative_path
        signature = sign(credentials.key, 'GET', url, {})
        headers = {
            HEADER_AUTHORIZATION: credentials.authorization_header(signature),
            HEADER_CONNECTION: 'keep-alive',
        }

        try:
            response = self.session.get(
                url,
                headers=headers,
                stream=True,
                timeout=(self.config.connect_timeout, self.config.idle_timeout)
            )
        except requests.RequestException as e:
            if not self._stopped.is_set():
                logger.warning("There was an error connecting to the stream API: %s", e)
            return None

        if not response.ok:
            logger.warning(
                "Stream API rejected the connection: %s %s",
                response.status_code,
                response.reason
            )
            response.close()
            return None

        with self._lock:
            if self._stopped.is_set():
                response.close()
                return None
            self._response = response
        return response

    def _consume(self, response: requests.Response) -> ReconnectReason:
        """Streaming: hand every chunk to the handler until the connection ends."""
        try:
            for chunk in response.iter_content(chunk_size=None):
                if self._stopped.is_set():
                    break
                if chunk:
                    self._deliver(chunk)
        except requests.RequestException as e:
            if self._stopped.is_set():
                return ReconnectReason.CLOSED
            if _is_read_timeout(e):
                logger.warning("Socket connection timed out, resetting stream connection")
                return ReconnectReason.TIMEOUT
            logger.warning("Socket connection failed (%s), resetting stream connection", e)
            return ReconnectReason.CLOSED

        if not self._stopped.is_set():
            logger.warning("Socket connection closed, resetting stream connection")
        return ReconnectReason.CLOSED

    def _deliver(self, chunk: bytes):
        try:
            self.config.handler(chunk)
        except Exception:
            logger.exception("Stream handler raised, continuing delivery")

    def _release(self, response: requests.Response):
        with self._lock:
            if self._response is response:
                self._response = None
        response.close()

    def _track(self, handle):
        """Remember a freshly scheduled attempt so ``stop()`` can cancel it."""
        with self._lock:
            if self._stopped.is_set():
                cancel = True
            else:
                cancel = False
                # An inline scheduler may already have stored a later attempt
                if self._pending is None:
                    self._pending = handle
        if cancel:
            handle.cancel()

    def _schedule(self, reason: ReconnectReason):
        """Reconnecting: defer the next attempt by the delay for ``reason``."""
        delay = self.config.delay_for(reason)
        if self.config.on_reconnect is not None:
            try:
                self.config.on_reconnect(reason)
            except Exception:
                logger.exception("Reconnect callback raised")

        with self._lock:
            if self._stopped.is_set():
                return
            # The attempt that brought us here has already run
            self._pending = None
        logger.info("Reconnecting stream (%s) in %ss", reason.value, delay)
        self._track(self.scheduler(delay, self.connect))
