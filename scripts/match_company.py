#!/usr/bin/env python3
"""
Match one company description against the catalog.

Usage:
    python scripts/match_company.py --website https://acme.com
    python scripts/match_company.py --name "Acme Inc" --phone "+1 415 555 1212"
    python scripts/match_company.py --facebook https://facebook.com/acme --json
    python scripts/match_company.py --name acme --from-db --sort name --dir asc
"""

import argparse
import json
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from pydantic import ValidationError

from config.settings import settings
from matching.catalog import NameDataset, load_profiles, load_profiles_json
from matching.database import SessionLocal
from matching.engine import CompanyResolver, ResolverConfig
from matching.models import EmptyQueryError, MatchRequest


def load_catalog(args):
    if args.from_db:
        db = SessionLocal()
        try:
            return load_profiles(db)
        finally:
            db.close()
    return load_profiles_json(args.profiles)


def print_table(response):
    print("=" * 78)
    if response.best:
        print(f"BEST: {response.best.name or '(no name)'}  <{response.best.website}>")
    else:
        print("BEST: no match")
    print(
        f"Tier: {response.tier.value} | {response.total} candidates | "
        f"page {response.page}/{response.total_pages}"
    )
    print("=" * 78)
    print(f"{'Score':>6}  {'Name':<32} Website")
    print("-" * 78)
    for c in response.candidates:
        print(f"{c.score:>6.2f}  {(c.profile.name or '')[:32]:<32} {c.profile.website}")


def main():
    parser = argparse.ArgumentParser(description="Match a company against the catalog")
    parser.add_argument("--name", help="Company name")
    parser.add_argument("--website", help="Company website")
    parser.add_argument("--phone", help="Phone number")
    parser.add_argument("--facebook", help="Facebook page URL")
    parser.add_argument("--page", type=int, default=1)
    parser.add_argument("--per-page", type=int, default=settings.DEFAULT_PER_PAGE)
    parser.add_argument("--sort", choices=["score", "name", "website"], default="score")
    parser.add_argument("--dir", choices=["asc", "desc"], default="desc")
    parser.add_argument("--min-score", type=float, default=0.0)
    parser.add_argument("--contains", help="Keep candidates whose name/website contains this")
    parser.add_argument(
        "--profiles",
        default=settings.PROFILES_PATH,
        help=f"Profiles JSON (default: {settings.PROFILES_PATH})",
    )
    parser.add_argument("--from-db", action="store_true", help="Load catalog from the catalog table")
    parser.add_argument("--json", action="store_true", help="Print the JSON response")

    args = parser.parse_args()

    try:
        request = MatchRequest(
            name=args.name,
            website=args.website,
            phone=args.phone,
            facebook=args.facebook,
            page=args.page,
            perPage=args.per_page,
            sort=args.sort,
            dir=args.dir,
            minScore=args.min_score,
            contains=args.contains,
        )
        request.to_query()
    except (ValidationError, EmptyQueryError) as e:
        print(f"Error: {e}")
        sys.exit(2)

    try:
        profiles = load_catalog(args)
    except FileNotFoundError as e:
        print(f"Error: catalog not found: {e.filename}")
        sys.exit(1)

    resolver = CompanyResolver(
        profiles,
        config=ResolverConfig.from_settings(),
        names=NameDataset(settings.NAMES_INPUT, settings.FUZZY_LOOSE_THRESHOLD),
    )
    response = resolver.resolve_request(request)

    if args.json:
        print(json.dumps(response.to_dict(), indent=2, ensure_ascii=False))
    else:
        print_table(response)


if __name__ == "__main__":
    main()
