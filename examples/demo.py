#!/usr/bin/env python3
"""
Packet link demo.

Opens a session with the brick, requests a report, prints every message
until the brick sends its exit frame, then shuts the session down.
"""

import argparse
import logging
import sys
from pathlib import Path

# Add package to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from nxtlink import Outcome, Session

REPORT_REQUEST = bytes([0x00, 0x08])


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--timeout", action="store_true",
                        help="give up on reads that stall instead of waiting forever")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    session = Session(timeout_enabled=args.timeout)
    outcome = session.open()
    if outcome.is_error:
        print(f"Error initialising: {outcome.message}")
        return 1

    try:
        outcome = session.send(REPORT_REQUEST)
        if outcome.is_error:
            print(f"Error sending: {outcome.message}")
            return 1

        while True:
            received = session.receive()
            if received.outcome.is_error:
                print(f"Error receiving: {received.outcome.message}")
                return 1
            if received.is_exit:
                break
            print(received.payload.decode("ascii", errors="replace"))
    finally:
        session.close()

    return 0


if __name__ == "__main__":
    sys.exit(main())
