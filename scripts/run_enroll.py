"""
Enroll a new identity from the webcam.

Opens the camera, runs the observation feed, captures 10 single-face
samples at 200 ms intervals, averages them into a template and registers
it with the identity server.

Usage:
    # Start the identity server first:
    python -m api.app

    python scripts/run_enroll.py --user-name "Alice"
    python scripts/run_enroll.py --user-name "Alice" --device 1 --api-url http://localhost:3000

Exit codes: 0 enrolled, 1 enrollment failed, 2 setup error.
"""

import argparse
import asyncio
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent.resolve()
sys.path.insert(0, str(PROJECT_ROOT))

from core.config import configure_logging, get_config
from core.enrollment import EnrollmentState
from core.errors import EmptyIdentityLabelError
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


async def enroll(args: argparse.Namespace) -> int:
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
            # Give the feed a moment to publish its first detections
            await asyncio.sleep(args.warmup)
            try:
                session = await app.enroll(args.user_name)
            except EmptyIdentityLabelError:
                return 2

            state = await session.wait()
        finally:
            await app.shutdown()
            if args.debug_log:
                print_debug_log(app)

    if state is EnrollmentState.COMPLETE:
        print(f"\nEnrolled '{session.label}' from {session.count} samples.")
        return 0

    print(f"\nEnrollment failed: {session.failure_reason}")
    return 1


def main() -> int:
    parser = argparse.ArgumentParser(description="Enroll a face identity from the webcam")
    parser.add_argument("--user-name", required=True, help="Identity label to register")
    parser.add_argument("--device", type=int, default=None, help="Camera device index")
    parser.add_argument("--api-url", default=None, help="Identity server base URL")
    parser.add_argument("--warmup", type=float, default=1.0,
                        help="Seconds to run the feed before capturing (default 1.0)")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--debug-log", action="store_true",
                        help="Print the client debug log when the run ends")
    args = parser.parse_args()

    configure_logging("DEBUG" if args.verbose else None)
    return asyncio.run(enroll(args))


if __name__ == "__main__":
    sys.exit(main())
