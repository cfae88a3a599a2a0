"""
List or delete enrolled identities on the identity server.

Usage:
    python scripts/manage_users.py list
    python scripts/manage_users.py delete "Alice"
"""

import argparse
import asyncio
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent.resolve()
sys.path.insert(0, str(PROJECT_ROOT))

from core.config import configure_logging, get_api_config
from core.errors import FaceAuthError
from frontend.api_client import IdentityClient


async def run(args: argparse.Namespace) -> int:
    api_config = dict(get_api_config())
    if args.api_url:
        api_config["base_url"] = args.api_url

    async with IdentityClient.from_config(api_config) as client:
        try:
            if args.command == "list":
                users = await client.list_users()
                if not users:
                    print("No registered users.")
                for user in users:
                    print(user.name)
                return 0

            result = await client.delete_user(args.name)
        except FaceAuthError as e:
            print(f"ERROR: {e}")
            return 2

    if result.success:
        print(f"User {args.name} deleted.")
        return 0
    print(f"Error: {result.message}")
    return 1


def main() -> int:
    parser = argparse.ArgumentParser(description="Manage enrolled identities")
    parser.add_argument("--api-url", default=None, help="Identity server base URL")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("list", help="List enrolled identities")
    delete = sub.add_parser("delete", help="Delete an identity")
    delete.add_argument("name", help="Identity label to delete")
    args = parser.parse_args()

    configure_logging()
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
