"""Send one message to a buoy channel and report the delivery result.

    python examples/send.py --channel <uuid> --wait 10 'hello'
"""

import argparse

from buoy_client import BuoyError
from buoy_client.sync_client import send


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Buoy sender")
    parser.add_argument("message")
    parser.add_argument("--service", default="https://cb.anchor.link")
    parser.add_argument("--channel", required=True, help="Channel, 10+ characters")
    parser.add_argument("--wait", type=float, default=None, help="Seconds to wait")
    parser.add_argument(
        "--require-delivery",
        action="store_true",
        help="Fail unless a listener receives the message within --wait",
    )
    args = parser.parse_args()

    try:
        result = send(
            args.message,
            args.service,
            args.channel,
            timeout=args.wait,
            require_delivery=args.require_delivery,
        )
    except BuoyError as exc:
        raise SystemExit(f"Send failed: {exc}")
    print(result.value)
