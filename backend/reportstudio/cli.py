"""Management CLI.

Usage:
    python -m reportstudio.cli create-tables         # Create missing tables
    python -m reportstudio.cli list-drafts <org_id>  # Show an org's reports
"""

import asyncio
import sys

from reportstudio.database import Base, engine
from reportstudio.services.store import REPORTS_TABLE, SqlReportStore


async def create_tables():
    import reportstudio.models  # noqa: F401  register tables on Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await engine.dispose()
    print("Tables created.")


async def list_drafts(org_id: str):
    store = SqlReportStore()
    result = await store.query(
        REPORTS_TABLE, {"org_id": org_id}, order_by="updated_at", descending=True
    )
    await engine.dispose()
    if not result.ok:
        print(f"  FAILED: {result.error}")
        return

    for row in result.data:
        print(
            f"  {row['id']}  step {row['current_step']}  "
            f"{row['status']:<10} {row['report_type']:<8} {row['title']}"
        )
    print(f"\n{len(result.data)} report(s)")


if __name__ == "__main__":
    cmd = sys.argv[1] if len(sys.argv) > 1 else ""
    if cmd == "create-tables":
        asyncio.run(create_tables())
    elif cmd == "list-drafts" and len(sys.argv) > 2:
        asyncio.run(list_drafts(sys.argv[2]))
    else:
        print("Usage: python -m reportstudio.cli [create-tables|list-drafts <org_id>]")
