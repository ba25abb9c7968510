#!/usr/bin/env python3
"""
Grant or list the admin role on mirrored member profiles.

Members must have signed in once (and been synced) before they can be promoted.
"""

import asyncio
import sys

from sqlalchemy import select

from club_events_platform.database import DatabaseManager
from club_events_platform.models.user import User, UserRole


async def promote(email: str, designation: str = None) -> int:
    """Give the member with this email the admin role."""
    manager = DatabaseManager()
    await manager.initialize()
    try:
        async with manager.get_session() as db:
            result = await db.execute(select(User).where(User.email == email))
            user = result.scalar_one_or_none()

            if user is None:
                print(f"No member with email {email}; they must sign in once first.")
                return 1

            user.role = UserRole.ADMIN
            if designation:
                user.designation = designation

        print(f"{email} ({user.id}) is now an admin.")
        return 0
    finally:
        await manager.close()


async def list_admins() -> int:
    """List all admin users."""
    manager = DatabaseManager()
    await manager.initialize()
    try:
        async with manager.get_session() as db:
            result = await db.execute(
                select(User).where(User.role == UserRole.ADMIN).order_by(User.email)
            )
            admins = result.scalars().all()

        if not admins:
            print("No admin users found.")
        for user in admins:
            print(f"{user.email}  {user.name}  {user.designation or '-'}  ({user.id})")
        return 0
    finally:
        await manager.close()


def main() -> int:
    if len(sys.argv) >= 2 and sys.argv[1] == "list":
        return asyncio.run(list_admins())
    if len(sys.argv) >= 2:
        designation = sys.argv[2] if len(sys.argv) > 2 else None
        return asyncio.run(promote(sys.argv[1], designation))

    print("Usage:")
    print("  python miscellaneous/promote_admin.py <email> [designation]")
    print("  python miscellaneous/promote_admin.py list")
    return 1


if __name__ == "__main__":
    sys.exit(main())
