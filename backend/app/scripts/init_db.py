"""Initialize database tables."""

import asyncio

from app.core.config import get_settings
from app.core.database import Database


async def main():
    database = Database(get_settings())
    print("Initializing database tables...")
    try:
        await database.init_db()
    finally:
        await database.dispose()
    print("Database initialization complete!")


if __name__ == "__main__":
    asyncio.run(main())
