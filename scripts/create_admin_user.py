"""
Create an admin user, or promote an existing user to admin.

Usage:
    python scripts/create_admin_user.py admin@example.com 'Str0ng!pass' --name "Site Admin"
"""

import argparse
import asyncio
import sys

sys.path.insert(0, ".")

from sqlalchemy import select

from teamdesk.constants import SystemRole
from teamdesk.database import async_session_maker
from teamdesk.models import User
from teamdesk.services.permission_cache_service import invalidate_user_permissions
from teamdesk.utils.security import get_password_hash, password_policy_error


async def create_admin_user(email: str, password: str, name: str | None) -> None:
    email = email.lower()
    async with async_session_maker() as db:
        result = await db.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()

        if user:
            user.role = SystemRole.ADMIN.value
            user.active = True
            await db.commit()
            invalidate_user_permissions(user.id)
            print(f"Promoted existing user {email} to admin")
            return

        error = password_policy_error(password)
        if error:
            print(f"Password rejected: {error}")
            sys.exit(1)

        user = User(
            email=email,
            password_hash=get_password_hash(password),
            name=name,
            role=SystemRole.ADMIN.value,
            active=True,
        )
        db.add(user)
        await db.commit()
        print(f"Created admin user: {email}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create or promote an admin user")
    parser.add_argument("email")
    parser.add_argument("password")
    parser.add_argument("--name", default=None)
    args = parser.parse_args()
    asyncio.run(create_admin_user(args.email, args.password, args.name))
