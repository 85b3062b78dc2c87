"""
Integration tests against a live BlueRover API.

Set BLUEROVER_KEY, BLUEROVER_TOKEN and BLUEROVER_BASE_URL to run them.
"""

import os
import threading

import pytest

from bluerover import BlueRoverClient, UnsupportedOperationError


KEY = os.environ.get("BLUEROVER_KEY")
TOKEN = os.environ.get("BLUEROVER_TOKEN")
BASE_URL = os.environ.get("BLUEROVER_BASE_URL")

pytestmark = pytest.mark.skipif(
    not (KEY and TOKEN and BASE_URL),
    reason="BLUEROVER_KEY, BLUEROVER_TOKEN and BLUEROVER_BASE_URL not set"
)


class TestIntegration:
    """Integration tests with a live server."""

    CALL_PATH = os.environ.get("BLUEROVER_CALL_PATH", "/device")

    @pytest.fixture
    def client(self):
        """Create authenticated client."""
        with BlueRoverClient(KEY, TOKEN, BASE_URL, timeout=15) as client:
            yield client

    def test_call_returns_body(self, client):
        """Test a signed call returns a text body."""
        body = client.call(self.CALL_PATH)

        assert isinstance(body, str)

    def test_call_param_order(self, client):
        """Test the server answers the same regardless of param order."""
        first = client.call(self.CALL_PATH, {"start": "0", "limit": "1"})
        second = client.call(self.CALL_PATH, {"limit": "1", "start": "0"})

        assert type(first) is type(second)

    def test_call_post_rejected(self, client):
        """Test POST is rejected locally."""
        with pytest.raises(UnsupportedOperationError):
            client.call(self.CALL_PATH, post=True)

    def test_stream_delivers_chunk(self, client):
        """Test the event stream delivers at least one chunk."""
        received = threading.Event()

        stream = client.stream(lambda chunk: received.set())
        try:
            if not received.wait(timeout=60):
                pytest.skip("No stream data within 60 seconds")
        finally:
            stream.stop()

        assert not stream.running
