"""Relay example: read and toggle a device value through the modem.

Shows the pipeline:
SerialHandler -> ATExecutor -> FirebaseClient -> ScalarValueExtractor

Run without arguments to see the request framing and value extraction on a
canned response; pass a serial port to talk to a real ESP-AT modem using
./config.yaml (or FIREBASE_AT_* variables) for the database settings.
"""

import sys
from dataclasses import replace
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from firebase_at.client import FirebaseClient
from firebase_at.config import ConfigLoader
from firebase_at.core import ATExecutor, SerialHandler, WifiLinkMonitor
from firebase_at.http import HttpMethod, build_request
from firebase_at.logging import CommunicationLogger
from firebase_at.parsers import ScalarValueExtractor, to_bool


def example_offline():
    """Build a request and parse a canned database reply."""
    print("Request framing")
    print("=" * 70)

    commands, text = build_request(
        HttpMethod.GET,
        "/home/relay/value",
        "https://demo-default-rtdb.firebaseio.com/",
        "<auth-token>"
    )
    print(f"  open:     {commands.open}")
    print(f"  announce: {commands.announce}")
    print(f"  payload:  {text!r}")
    print(f"  close:    {commands.close}")

    raw = (
        "HTTP/1.1 200 OK\r\n"
        "Content-Type: application/json; charset=utf-8\r\n"
        "Connection: close\r\n"
        "\r\n"
        '"on"'
    )
    value = ScalarValueExtractor().extract_value(raw)

    print("\nValue extraction")
    print("=" * 70)
    print(f"  value:   {value!r}")
    print(f"  boolean: {to_bool(value)}  ('on' is not one of 1/true/TRUE)")


def example_live(port: str):
    """Read the relay, then write its inverse back as 1/0.

    POST would push the body under a generated child key, so the write uses
    PATCH to update <base>/relay/value in place.
    """
    config = ConfigLoader().load()
    firebase = replace(config.firebase, write_method="PATCH")
    logger = CommunicationLogger(log_level="DEBUG")

    with SerialHandler(port, baud_rate=config.modem.baud_rate, logger=logger) as handler:
        executor = ATExecutor(handler, logger=logger, port_name=port)
        client = FirebaseClient(
            firebase,
            executor,
            is_wifi_connected=WifiLinkMonitor(executor, logger=logger),
            timing=config.timing,
            logger=logger
        )

        result = client.read_result("relay")
        print(f"\nrelay = {result.value!r} ({result.reason.value if result.reason else 'ok'})")

        on = to_bool(result.value)
        print(f"Writing relay = {0 if on else 1}: {client.write_boolean('relay', not on)}")


if __name__ == "__main__":
    if len(sys.argv) > 1:
        example_live(sys.argv[1])
    else:
        example_offline()
