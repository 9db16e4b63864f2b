#!/usr/bin/env python3
"""
Database initialization script for the Delivery Admin API.

- Creates tables, optionally dropping the existing ones first.
- Optionally seeds the default delivery methods into an empty catalog.
"""

import asyncio
import argparse

from core.database import db_manager, initialize_db
from core.config import settings
from services.delivery_methods import DeliveryMethodService


async def create_tables(drop_first: bool = False):
    db_uri = settings.SQLALCHEMY_DATABASE_URI
    print(f"🔗 Connecting to database: {db_uri.split('@')[-1] if '@' in db_uri else db_uri}")

    try:
        if drop_first:
            print("🗑️  Dropping existing tables...")
        print("🏗️  Creating tables...")
        await db_manager.create_tables(drop_first=drop_first)
        print("✅ Database tables created successfully!")
    except Exception as e:
        print(f"❌ Error creating tables: {e}")
        raise


async def seed_delivery_methods() -> int:
    async with db_manager.session_factory() as session:
        inserted = await DeliveryMethodService(session).ensure_seeded()
    if inserted:
        print(f"🚚 Created {inserted} default delivery methods.")
    else:
        print("🚚 Delivery methods already present, nothing to seed.")
    return inserted


async def main():
    parser = argparse.ArgumentParser(
        description="Initialize DB tables and optionally seed default delivery methods.")
    parser.add_argument("--drop", action="store_true",
                        help="Drop existing tables before creating them")
    parser.add_argument("--seed", action="store_true",
                        help="Seed the default delivery methods after creating tables")
    args = parser.parse_args()

    print("🚀 Initializing Delivery Admin Database...")

    initialize_db(settings.SQLALCHEMY_DATABASE_URI, settings.ENVIRONMENT == "local")

    try:
        await create_tables(drop_first=args.drop)
        if args.seed:
            await seed_delivery_methods()
        print("✅ Database initialization complete!")
    except Exception as e:
        print(f"❌ Error initializing database: {e}")
        raise
    finally:
        await db_manager.dispose()


if __name__ == "__main__":
    asyncio.run(main())
