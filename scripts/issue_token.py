#!/usr/bin/env python3
"""CLI script to print an access token for a CRM user.

Usage:
    python scripts/issue_token.py --email ops@example.com
    python scripts/issue_token.py --email ops@example.com --first-name Ada --last-name Lovelace --create

Connects directly to the database using DATABASE_URL from environment or .env file.
With --create, the user is inserted when no user with that email exists.
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys
from contextlib import aclosing

# Ensure project root is on sys.path so we can import src.crm
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from dotenv import load_dotenv  # noqa: E402

# Load .env from project root
load_dotenv(os.path.join(os.path.dirname(__file__), "..", ".env"))


async def issue(email: str, first_name: str | None, last_name: str | None, create: bool) -> int:
    """Look up (or create) the user and print a token. Returns an exit code."""
    from sqlalchemy import select

    from src.crm.core.database import close_db, get_session, init_db
    from src.crm.core.security import create_access_token
    from src.crm.models.people import User

    await init_db()
    try:
        async with aclosing(get_session()) as sessions:
            session = await anext(sessions)
            user = (
                await session.execute(select(User).where(User.email == email))
            ).scalar_one_or_none()

            if user is None:
                if not create:
                    print(f"No user with email {email} (pass --create to add one)", file=sys.stderr)
                    return 1
                user = User(email=email, first_name=first_name, last_name=last_name)
                session.add(user)
                await session.commit()
                await session.refresh(user)
                print(f"Created user {user.id}", file=sys.stderr)

            if user.deleted:
                print(f"User {user.id} is soft-deleted; refusing to issue a token", file=sys.stderr)
                return 1

            print(create_access_token({"sub": str(user.id)}))
            return 0
    finally:
        await close_db()


def main() -> None:
    parser = argparse.ArgumentParser(description="Issue a JWT access token for a CRM user")
    parser.add_argument("--email", required=True, help="User email")
    parser.add_argument("--first-name", default=None, help="First name (with --create)")
    parser.add_argument("--last-name", default=None, help="Last name (with --create)")
    parser.add_argument("--create", action="store_true", help="Create the user if missing")
    args = parser.parse_args()

    sys.exit(asyncio.run(issue(args.email, args.first_name, args.last_name, args.create)))


if __name__ == "__main__":
    main()
