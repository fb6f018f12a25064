#!/usr/bin/env python
"""Create the benefits engine tables.

Usage:
    python scripts/create_tables.py
    python scripts/create_tables.py --database-url sqlite+aiosqlite:///benefits.db
    python scripts/create_tables.py --dry-run
"""

import argparse
import asyncio

from benefits_engine.database import create_tables, get_engine
from benefits_engine.models import Base


async def run(database_url: str | None, dry_run: bool) -> None:
    tables = sorted(Base.metadata.tables)
    if dry_run:
        for name in tables:
            print(f"  [DRY RUN] Would create: {name}")
        return

    engine = get_engine(database_url)
    try:
        await create_tables(engine)
    finally:
        await engine.dispose()
    print(f"Created {len(tables)} table(s): {', '.join(tables)}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Create benefits engine tables")
    parser.add_argument(
        "--database-url",
        default=None,
        help="Async database URL (defaults to DATABASE_URL)",
    )
    parser.add_argument("--dry-run", action="store_true", help="List tables without creating them")
    args = parser.parse_args()

    asyncio.run(run(args.database_url, args.dry_run))


if __name__ == "__main__":
    main()
