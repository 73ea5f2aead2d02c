#!/usr/bin/env python3
"""
NoteVault -- note-taking REST API with JWT sessions, TOTP 2FA and RBAC.

Usage:
  python main.py
  python main.py --host 0.0.0.0 --port 9000
  python main.py --reload

Environment variables (see core/config.py for the full list):
  SECRET_KEY     JWT signing key, 32+ characters. Required unless DEBUG=true.
  DATABASE_URL   SQLAlchemy URL. Defaults to sqlite:///notevault.db in the repo.
  ADDRESS, PORT  Default bind address when --host / --port are not given.
"""

import argparse

import uvicorn

from core.config import get_settings


def main() -> None:
    settings = get_settings()
    parser = argparse.ArgumentParser(
        prog="notevault",
        description="Serve the NoteVault REST API.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py
  python main.py --port 9000
  DEBUG=true python main.py --reload
        """,
    )
    parser.add_argument(
        "--host",
        default=settings.address,
        help=f"Bind address (default: {settings.address})",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=settings.port,
        help=f"Bind port (default: {settings.port})",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Restart the server when source files change (development only)",
    )
    args = parser.parse_args()

    print(f"\nNoteVault API listening on http://{args.host}:{args.port}\n")
    uvicorn.run("api.main:app", host=args.host, port=args.port, reload=args.reload)


if __name__ == "__main__":
    main()
