#!/usr/bin/env python3
"""
Backfill the currency of legacy delivery methods.

Delivery methods created before currencies existed have no `currency`
column, or a NULL in it. This adds the column when it is missing and sets
NGN on every row without a currency. Safe to run more than once.

Usage:
    python -m migrations.backfill_delivery_method_currency
"""

import asyncio
import logging
import sys
import os

# Add the backend directory to the Python path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import inspect, text
from sqlalchemy.ext.asyncio import AsyncConnection

from core.config import settings
from core.database import db_manager, initialize_db
from core.logging_config import setup_logging
from models.delivery_method import DEFAULT_CURRENCY

logger = logging.getLogger(__name__)

TABLE_NAME = "delivery_methods"


def _column_names(sync_conn) -> list:
    inspector = inspect(sync_conn)
    if not inspector.has_table(TABLE_NAME):
        return []
    return [column["name"] for column in inspector.get_columns(TABLE_NAME)]


async def backfill_currency(conn: AsyncConnection) -> int:
    """Add the currency column if absent and fill NULLs. Returns rows updated."""
    columns = await conn.run_sync(_column_names)
    if not columns:
        logger.info(f"Table {TABLE_NAME} does not exist, nothing to backfill")
        return 0

    if "currency" not in columns:
        logger.info(f"Adding currency column to {TABLE_NAME}")
        await conn.execute(text(
            f"ALTER TABLE {TABLE_NAME} "
            f"ADD COLUMN currency VARCHAR(10) DEFAULT '{DEFAULT_CURRENCY}'"
        ))

    result = await conn.execute(
        text(f"UPDATE {TABLE_NAME} SET currency = :currency WHERE currency IS NULL"),
        {"currency": DEFAULT_CURRENCY},
    )
    updated = result.rowcount or 0
    logger.info(f"Backfilled currency on {updated} delivery methods")
    return updated


async def main():
    setup_logging(settings.LOG_LEVEL)
    initialize_db(settings.SQLALCHEMY_DATABASE_URI, settings.ENVIRONMENT == "local")

    try:
        async with db_manager.engine.begin() as conn:
            await backfill_currency(conn)
    finally:
        await db_manager.dispose()


if __name__ == "__main__":
    asyncio.run(main())
