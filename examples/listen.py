"""Listen on a buoy channel and print every message.

    pip install buoy-client

    python examples/listen.py --channel <uuid>
    python examples/send.py --channel <uuid> '{"hello": "world"}'
"""

import argparse
import asyncio
import logging
import signal

from buoy_client import Listener


async def main(service: str, channel: str, use_json: bool):
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    listener = Listener(service, channel, json=use_json)

    @listener.on("connect")
    def on_connect():
        print(f"Connected to {listener.url}")

    @listener.on("disconnect")
    def on_disconnect():
        print("Disconnected, will retry")

    @listener.on("error")
    def on_error(error):
        print(f"[{error.code}] {error}")

    @listener.on("message")
    def on_message(message):
        print(f"> {message}")

    await stop.wait()
    await listener.aclose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Buoy listener")
    parser.add_argument("--service", default="https://cb.anchor.link")
    parser.add_argument("--channel", required=True, help="Channel, 10+ characters")
    parser.add_argument("--json", action="store_true", help="Decode messages as JSON")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    asyncio.run(main(args.service, args.channel, args.json))
