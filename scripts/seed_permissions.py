"""
Seed the default roles, permissions and role grants.

Safe to run repeatedly: only missing rows are inserted.

Usage:
    python scripts/seed_permissions.py
"""

import asyncio
import sys

sys.path.insert(0, ".")

from teamdesk.database import async_session_maker
from teamdesk.services.permission_service import sync_default_permissions


async def seed_permissions():
    async with async_session_maker() as db:
        added = await sync_default_permissions(db)

    print(f"Roles added:       {added['roles']}")
    print(f"Permissions added: {added['permissions']}")
    print(f"Grants added:      {added['grants']}")
    if not any(added.values()):
        print("Permissions already up to date")


if __name__ == "__main__":
    asyncio.run(seed_permissions())
