"""Initialize commission ledger tables."""
import asyncio

from app.database import engine, init_db


async def init():
    """Create all tables."""
    print("Creating database tables...")
    await init_db(engine)
    await engine.dispose()
    print("Database tables created successfully!")


if __name__ == "__main__":
    asyncio.run(init())
