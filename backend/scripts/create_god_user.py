#!/usr/bin/env python3
"""
Script to bootstrap DocVault accounts from the command line.

The god role cannot be granted through the API by anyone but another god, so
the first one has to be created here.
"""

import asyncio
import getpass
import sys
from pathlib import Path

# Add the backend directory to the Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

from sqlalchemy import select

from app.core.database import create_tables, init_database
from app.models.user import User
from app.services.auth_service import auth_service
from app.services.role_authority import Role
from app.utils.exceptions import ConflictError


def prompt_account():
    """Ask for email, name and a confirmed password."""
    while True:
        email = input("Email: ").strip()
        if "@" not in email:
            print("❌ Please enter a valid email address.")
            continue
        break

    full_name = input("Full Name: ").strip() or email.split("@")[0]

    while True:
        password = getpass.getpass("Password: ")
        if len(password) < 8:
            print("❌ Password must be at least 8 characters long.")
            continue
        if password != getpass.getpass("Confirm Password: "):
            print("❌ Passwords do not match.")
            continue
        break

    return email, full_name, password


async def create_god_user():
    """Create a god account interactively."""
    print("🔧 DocVault - God User Creation")
    print("=" * 50)

    database = init_database()
    await create_tables(database.engine)
    try:
        async with database.session_factory() as db:
            result = await db.execute(select(User).where(User.role == Role.GOD.value))
            existing = result.scalars().all()
            if existing:
                print(f"⚠️  Found {len(existing)} existing god user(s):")
                for user in existing:
                    print(f"   - {user.email}")
                if input("\nCreate another one? (y/N): ").strip().lower() != "y":
                    print("❌ God user creation cancelled.")
                    return

            email, full_name, password = prompt_account()
            try:
                user = await auth_service.create_user(
                    email=email,
                    password=password,
                    full_name=full_name,
                    db=db,
                    role=Role.GOD.value,
                )
            except ConflictError as e:
                print(f"❌ {e}")
                return

            print("✅ God user created successfully!")
            print(f"   Email: {user.email}")
            print(f"   User ID: {user.id}")
    finally:
        await database.dispose()


async def list_users():
    """List all users in the system."""
    database = init_database()
    try:
        async with database.session_factory() as db:
            result = await db.execute(select(User).order_by(User.created_at.desc()))
            users = result.scalars().all()
    finally:
        await database.dispose()

    if not users:
        print("❌ No users found in the system.")
        return

    print(f"\nFound {len(users)} user(s):")
    print("-" * 80)
    print(f"{'Email':<35} {'Role':<12} {'Approval':<10} {'Status':<10}")
    print("-" * 80)
    for user in users:
        status = "Active" if user.is_active else "Inactive"
        print(f"{user.email:<35} {user.role:<12} {user.approval_status:<10} {status}")
    print("-" * 80)


async def main():
    command = sys.argv[1].lower() if len(sys.argv) > 1 else "god"
    if command == "god":
        await create_god_user()
    elif command == "list":
        await list_users()
    else:
        print("❌ Unknown command. Use: god or list")
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
