"""
Verify the face in front of the webcam against enrolled identities.

Runs the observation feed briefly, then makes a single verification
attempt on the latest snapshot.

Usage:
    python scripts/run_verify.py
    python scripts/run_verify.py --device 1 --warmup 2.0

Exit codes: 0 access granted, 1 denied or failed, 2 setup error.
"""

import argparse
import asyncio
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent.resolve()
sys.path.insert(0, str(PROJECT_ROOT))

from core.config import configure_logging, get_config
from core.face_detector import FaceDetector
from core.feedback import StatusMessage
from frontend.api_client import IdentityClient
from frontend.app import FaceAuthApp, threaded


def print_status(message: StatusMessage) -> None:
    print(f"  [{message.level.value:>7}] {message.text}")


def print_debug_log(app: FaceAuthApp) -> None:
    print("\n--- debug log ---")
    for line in app.debug_log.lines():
        print(line)


async def verify(args: argparse.Namespace) -> int:
    config = get_config()
    api_config = dict(config.get("api", {}))
    if args.api_url:
        api_config["base_url"] = args.api_url

    detector = FaceDetector(config.get("detector", {}))

    async with IdentityClient.from_config(api_config) as client:
        app = FaceAuthApp(client, threaded(detector), config=config, on_status=print_status)
        device = args.device if args.device is not None else config["camera"]["device_id"]

        if not await app.select_device(device):
            return 2

        try:
            await asyncio.sleep(args.warmup)
            outcome = await app.verify()
        finally:
            await app.shutdown()
            if args.debug_log:
                print_debug_log(app)

    if outcome.granted:
        distance = f" (distance {outcome.distance:.3f})" if outcome.distance is not None else ""
        print(f"\nAccess granted: {outcome.identity}{distance}")
        return 0

    print(f"\n{outcome.message}")
    return 1


def main() -> int:
    parser = argparse.ArgumentParser(description="Verify a face against enrolled identities")
    parser.add_argument("--device", type=int, default=None, help="Camera device index")
    parser.add_argument("--api-url", default=None, help="Identity server base URL")
    parser.add_argument("--warmup", type=float, default=1.0,
                        help="Seconds to run the feed before sampling (default 1.0)")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--debug-log", action="store_true",
                        help="Print the client debug log when the run ends")
    args = parser.parse_args()

    configure_logging("DEBUG" if args.verbose else None)
    return asyncio.run(verify(args))


if __name__ == "__main__":
    sys.exit(main())
