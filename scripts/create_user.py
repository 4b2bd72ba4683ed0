#!/usr/bin/env python3
"""Provision an officer or admin account.

Public registration only creates homeowner and officer accounts, so admins
are created here:

    python scripts/create_user.py admin@example.com 's3cret-pass' "Ada Admin" --role admin
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from homeaudit.core.logging import setup_logging
from homeaudit.domain.errors import DomainError
from homeaudit.domain.services.auth_service import AuthService
from homeaudit.infrastructure.db.models import UserRole
from homeaudit.infrastructure.db.session import get_session_factory


async def create_user(email: str, password: str, full_name: str, role: UserRole) -> str:
    session_factory = get_session_factory()
    async with session_factory() as session:
        result = await AuthService(session).register_user(
            email=email, password=password, full_name=full_name, role=role
        )
    return result["user"]["id"]


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("email")
    parser.add_argument("password")
    parser.add_argument("full_name")
    parser.add_argument(
        "--role",
        choices=[role.value for role in UserRole],
        default=UserRole.OFFICER.value,
    )
    args = parser.parse_args()

    setup_logging()
    try:
        user_id = asyncio.run(
            create_user(args.email, args.password, args.full_name, UserRole(args.role))
        )
    except DomainError as exc:
        sys.exit(f"Could not create user: {exc}")
    print(f"Created {args.role} {args.email} ({user_id})")


if __name__ == "__main__":
    main()
