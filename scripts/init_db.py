"""Script to initialize the database."""

import asyncio
import sys

from sqlalchemy import text

from medpulse.database import DATABASE_URL, AsyncSessionLocal, engine
from medpulse.models import metadata
from medpulse.repositories.sql import SqlSettingsRepository


async def init_db(reset: bool = False) -> None:
    """Create all tables and the default clinic settings row."""
    async with engine.begin() as conn:
        if DATABASE_URL.startswith("postgresql"):
            await conn.execute(text('CREATE EXTENSION IF NOT EXISTS "pgcrypto"'))

        if reset:
            await conn.run_sync(metadata.drop_all)
        await conn.run_sync(metadata.create_all)

    async with AsyncSessionLocal() as session:
        store = SqlSettingsRepository(session)
        await store.save(await store.get())

    await engine.dispose()
    print("✓ Database initialized successfully!")


if __name__ == "__main__":
    asyncio.run(init_db(reset="--reset" in sys.argv))
