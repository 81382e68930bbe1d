"""Seed the development database with a demo employee directory."""

import asyncio

from travel_claims.backend.src.db import create_all, get_engine, session_scope
from travel_claims.backend.src.services.seed import DEMO_EMPLOYEES, seed_demo_directory


async def main() -> None:
    """Create tables (if needed) and ensure the demo directory exists."""

    await create_all(get_engine())

    async with session_scope() as session:
        result = await seed_demo_directory(session)

    print("✅ Development data ready!")
    print(f"Created: {', '.join(result.created) or 'none'}")
    print(f"Updated: {', '.join(result.updated) or 'none'}")
    print()
    for record in DEMO_EMPLOYEES:
        chain = " -> ".join(
            str(record[column])
            for column in ("approver_l1_id", "approver_l2_id", "approver_l3_id")
            if record.get(column)
        )
        print(f"{record['employee_id']:<9} {record['grade']:<14} chain: {chain or '(none)'}")
    print()
    print("Send requests with the X-User-Id header set to one of the ids above.")


if __name__ == "__main__":
    asyncio.run(main())
