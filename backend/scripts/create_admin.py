"""Create (or re-activate) a back-office admin account.

Usage:
    python scripts/create_admin.py ops@fshome.app --password 's3cret' --super
    python scripts/create_admin.py ops@fshome.app --password 'n3w' --reset
"""

from __future__ import annotations

import argparse
import asyncio
import sys

from sqlalchemy import select

from fshome.db import SessionLocal, engine
from fshome.models.admin import AdminUser
from fshome.security import hash_password


async def create_admin(email: str, password: str, nickname: str | None, super_admin: bool, reset: bool) -> int:
    role = "super_admin" if super_admin else "admin"
    async with SessionLocal() as session:
        existing = await session.scalar(select(AdminUser).where(AdminUser.email == email))
        if existing and not reset:
            print(f"Admin {email} already exists (role={existing.role}); pass --reset to overwrite.")
            return 1
        if existing:
            existing.password_hash = hash_password(password)
            existing.role = role
            existing.is_active = True
            if nickname:
                existing.nickname = nickname
            print(f"Reset admin {email} (role={role})")
        else:
            session.add(AdminUser(email=email, password_hash=hash_password(password), nickname=nickname, role=role))
            print(f"Created admin {email} (role={role})")
        await session.commit()
    await engine.dispose()
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("email")
    parser.add_argument("--password", required=True)
    parser.add_argument("--nickname")
    parser.add_argument("--super", dest="super_admin", action="store_true", help="grant super_admin role")
    parser.add_argument("--reset", action="store_true", help="overwrite an existing account")
    args = parser.parse_args()
    sys.exit(asyncio.run(create_admin(args.email, args.password, args.nickname, args.super_admin, args.reset)))


if __name__ == "__main__":
    main()
