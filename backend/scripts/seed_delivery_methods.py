#!/usr/bin/env python3
"""
Script to seed the default delivery methods into an empty catalog.
A catalog that already holds delivery methods is left untouched.
"""

import asyncio
import sys
import os

# Add the backend directory to the Python path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.database import db_manager, initialize_db
from services.delivery_methods import DeliveryMethodService


async def seed_delivery_methods(db: AsyncSession) -> int:
    """Seed the defaults when the catalog is empty; returns how many were created"""
    return await DeliveryMethodService(db).ensure_seeded()


async def main():
    initialize_db(settings.SQLALCHEMY_DATABASE_URI, settings.ENVIRONMENT == "local")
    await db_manager.create_tables()

    try:
        async with db_manager.session_factory() as db:
            print("Seeding delivery methods...")
            inserted = await seed_delivery_methods(db)
            if inserted:
                print(f"Created {inserted} default delivery methods")
            else:
                print("Delivery methods already present, nothing to seed.")
    finally:
        await db_manager.dispose()


if __name__ == "__main__":
    asyncio.run(main())
