"""Create every table on the configured database."""

import asyncio

from travel_claims.backend.src.core.config import get_settings
from travel_claims.backend.src.db import create_all, get_engine


async def init_db() -> None:
    print(f"🚀 Connecting to {get_settings().database_url}")
    await create_all(get_engine())
    print("✅ Tables created successfully!")


if __name__ == "__main__":
    asyncio.run(init_db())
