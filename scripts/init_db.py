#!/usr/bin/env python
"""Initialize database tables and the activity definition catalog."""

import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from activity_ledger.core.config import settings
from activity_ledger.db.database import create_engine, create_session_maker, init_db
from activity_ledger.services.definition_service import ActivityDefinitionService


async def main() -> None:
    """Main initialization function."""
    print(f"Initializing database: {settings.database_url}")

    engine = create_engine()
    try:
        # Create tables
        await init_db(engine)
        print("Database tables created")

        # Seed the catalog
        async with create_session_maker(engine)() as session:
            count = await ActivityDefinitionService(session).upsert_definitions()
        print(f"Seeded {count} activity definitions")
    finally:
        await engine.dispose()

    print("Database initialization complete!")


if __name__ == "__main__":
    asyncio.run(main())
