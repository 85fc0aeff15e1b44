#!/usr/bin/env python3
"""
Build the company catalog from crawler output and the company-name dataset.

Joins crawled signals (phones, social links, address) with company names by
website, writes the profiles JSON, and optionally stores them in the catalog
table.

Usage:
    python scripts/build_catalog.py
    python scripts/build_catalog.py --names data/names.csv --scraped out/scraped.json
    python scripts/build_catalog.py --store-db
"""

import argparse
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from config.settings import settings
from matching.catalog import (
    load_scraped,
    merge_profiles,
    read_csv,
    save_profiles,
    write_profiles_json,
)
from matching.database import SessionLocal, init_db


def main():
    parser = argparse.ArgumentParser(
        description="Merge crawled signals with company names into a catalog"
    )
    parser.add_argument(
        "--names",
        default=settings.NAMES_INPUT,
        help=f"Company-name CSV (default: {settings.NAMES_INPUT})",
    )
    parser.add_argument(
        "--scraped",
        default=settings.SCRAPED_PATH,
        help=f"Crawler JSON output (default: {settings.SCRAPED_PATH})",
    )
    parser.add_argument(
        "--out",
        default=settings.PROFILES_PATH,
        help=f"Profiles JSON to write (default: {settings.PROFILES_PATH})",
    )
    parser.add_argument(
        "--store-db",
        action="store_true",
        help="Also store profiles in the catalog table (DATABASE_URL)",
    )

    args = parser.parse_args()

    for path in (args.names, args.scraped):
        if not Path(path).exists():
            print(f"Error: input not found: {path}")
            sys.exit(1)

    name_rows = read_csv(args.names)
    scraped_rows = load_scraped(args.scraped)
    profiles = merge_profiles(name_rows, scraped_rows)

    write_profiles_json(args.out, profiles)

    print("=" * 60)
    print("CATALOG BUILD")
    print("=" * 60)
    print(f"Name rows:        {len(name_rows)}")
    print(f"Crawled rows:     {len(scraped_rows)}")
    print(f"Profiles written: {len(profiles)} -> {args.out}")
    print(f"  with name:      {sum(1 for p in profiles if p.name)}")
    print(f"  with phone:     {sum(1 for p in profiles if p.phones)}")
    print(f"  with facebook:  {sum(1 for p in profiles if p.facebook_urls)}")

    if args.store_db:
        init_db()
        db = SessionLocal()
        try:
            stored = save_profiles(db, profiles)
            print(f"Stored in catalog table: {stored}")
        finally:
            db.close()

    print("=" * 60)


if __name__ == "__main__":
    main()
