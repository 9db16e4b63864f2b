#!/usr/bin/env python3
"""
Create an approved admin account, or promote an existing account to admin.

Usage:
    python scripts/create_admin.py admin@example.com --name "Ops Admin" --password secret123
    python scripts/create_admin.py existing@example.com   # promote only
"""

import argparse
import asyncio
import getpass
import sys
import os

# Add the backend directory to the Python path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.database import db_manager, initialize_db
from core.utils.encryption import PasswordManager
from models.user import User, UserRole

MIN_PASSWORD_LENGTH = 6


async def create_or_promote_admin(
    db: AsyncSession,
    email: str,
    name: str = None,
    password: str = None,
    phone: str = None,
    company_name: str = None,
) -> User:
    """Promote the account for `email`, creating it first when it does not exist."""
    email = email.lower()
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()

    if user is None:
        if not name or not password:
            raise ValueError("name and password are required to create a new admin")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"password must have at least {MIN_PASSWORD_LENGTH} characters")
        user = User(
            email=email,
            name=name,
            hashed_password=PasswordManager.hash_password(password),
            phone=phone,
            company_name=company_name,
        )
        db.add(user)

    user.role = UserRole.ADMIN
    user.approved = True
    user.is_active = True
    await db.commit()
    await db.refresh(user)
    return user


async def main():
    parser = argparse.ArgumentParser(description="Create or promote an admin account.")
    parser.add_argument("email")
    parser.add_argument("--name")
    parser.add_argument("--password", help="Prompted for when creating and omitted")
    parser.add_argument("--phone")
    parser.add_argument("--company-name")
    args = parser.parse_args()

    initialize_db(settings.SQLALCHEMY_DATABASE_URI, settings.ENVIRONMENT == "local")
    await db_manager.create_tables()

    try:
        async with db_manager.session_factory() as db:
            result = await db.execute(select(User.id).where(User.email == args.email.lower()))
            exists = result.scalar_one_or_none() is not None

            password = args.password
            if not exists and not password:
                password = getpass.getpass("Password: ")

            user = await create_or_promote_admin(
                db,
                args.email,
                name=args.name,
                password=password,
                phone=args.phone,
                company_name=args.company_name,
            )
            action = "Promoted" if exists else "Created"
            print(f"✅ {action} admin {user.email} ({user.id})")
    except ValueError as e:
        print(f"❌ {e}")
        sys.exit(1)
    finally:
        await db_manager.dispose()


if __name__ == "__main__":
    asyncio.run(main())
