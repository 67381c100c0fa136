#!/usr/bin/env python3
"""
Script: create_tables.py
Purpose: Create the storefront schema from the SQLAlchemy models

Existing tables are left untouched (CREATE IF NOT EXISTS semantics).

Usage:
    cd backend && source venv/bin/activate
    python scripts/create_tables.py [--dry-run]

Options:
    --dry-run    List the tables that would be created
"""

import sys
import argparse
from pathlib import Path

# Add backend to path
BACKEND_DIR = Path(__file__).parent.parent
sys.path.insert(0, str(BACKEND_DIR))

from dotenv import load_dotenv

load_dotenv(BACKEND_DIR / '.env')

from storefront.core.database import Base, get_engine
import storefront.models  # noqa: F401  (registers every table on Base.metadata)


def main():
    parser = argparse.ArgumentParser(description="Create storefront tables")
    parser.add_argument("--dry-run", action="store_true", help="List tables without creating them")
    args = parser.parse_args()

    tables = list(Base.metadata.sorted_tables)

    if args.dry_run:
        print(f"{len(tables)} tables would be created (if missing):")
        for table in tables:
            print(f"  - {table.name}")
        return 0

    Base.metadata.create_all(get_engine())
    print(f"Schema ready: {len(tables)} tables")
    return 0


if __name__ == "__main__":
    sys.exit(main())
