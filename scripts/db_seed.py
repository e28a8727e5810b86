"""Seed the catalog database with the bundled demo products.

This script is idempotent: it creates the `products` table if it does not
exist, upserts every product from the JSON seed and removes leftover rows
whose id is not in the seed.

Usage:
    python scripts/db_seed.py [path/to/products.json]

The script reads DATABASE_URL (and CATALOG_FILE) from the environment or .env.
"""
import asyncio
import sys
from pathlib import Path

# Ensure project root is on sys.path so the package imports without installation
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from illuminous.catalog import SqlCatalog, load_products, seed_products
from illuminous.config import settings
from illuminous.database import create_tables, make_engine, make_session_maker


async def seed(seed_file: str) -> None:
    engine = make_engine(settings.database_url)
    try:
        await create_tables(engine)
        session_maker = make_session_maker(engine)
        count = await seed_products(session_maker, load_products(seed_file))
        print(f"Seeded {count} products from {seed_file}")

        # Dump products for debugging (id, name, available quantity)
        print("DB products after seeding:")
        for p in await SqlCatalog(session_maker).list_products():
            print((p.id, p.name, p.available_quantity))
    finally:
        await engine.dispose()


def main():
    seed_file = sys.argv[1] if len(sys.argv) > 1 else settings.catalog_file
    print("DB seed starting, DATABASE_URL=", settings.database_url)
    try:
        asyncio.run(seed(seed_file))
    except Exception as e:
        print(f"DB seed failed: {e}")
        sys.exit(1)
    print("DB seed complete")


if __name__ == "__main__":
    main()
