#!/usr/bin/env python3
"""
Basic usage example for the BlueRover API client.

Makes one signed call, then prints stream data until interrupted.

    BLUEROVER_KEY=... BLUEROVER_TOKEN=... BLUEROVER_BASE_URL=http://api.bluerover.us \
        python example_usage.py
"""

import logging
import os
import sys
import time

from bluerover import BlueRoverClient, BlueRoverError


def main():
    """Run the example."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s"
    )

    key = os.environ.get("BLUEROVER_KEY", "")
    token = os.environ.get("BLUEROVER_TOKEN", "")
    base_url = os.environ.get("BLUEROVER_BASE_URL", "")

    print("=== BlueRover API Client Example ===\n")

    try:
        client = BlueRoverClient(key, token, base_url)
    except BlueRoverError as e:
        print(f"Cannot create client: {e}")
        print("Set BLUEROVER_KEY, BLUEROVER_TOKEN and BLUEROVER_BASE_URL.")
        sys.exit(1)

    with client:
        print("1. Calling /device...")
        try:
            body = client.call("/device", {"start": "0", "limit": "10"})
            print(f"   {body[:200]}\n")
        except BlueRoverError as e:
            print(f"   ✗ Call failed: {e}\n")

        print("2. Streaming /eventstream (Ctrl+C to stop)...")
        stream = client.stream(
            lambda chunk: print(chunk.decode('utf-8', errors='replace'), end='', flush=True),
            on_reconnect=lambda reason: print(f"\n   -- reconnecting ({reason.value}) --")
        )
        try:
            while stream.running:
                time.sleep(1)
        except KeyboardInterrupt:
            print("\nStopping stream...")


if __name__ == "__main__":
    main()
