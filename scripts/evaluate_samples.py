#!/usr/bin/env python3
"""
Run the sample-input CSV through the resolver and report hit rates.

Expected columns: "input name", "input website", "input phone", "input_facebook".

Usage:
    python scripts/evaluate_samples.py
    python scripts/evaluate_samples.py --input data/API-input-sample.csv --limit 30
    python scripts/evaluate_samples.py --verbose
"""

import argparse
import sys
from collections import Counter
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from config.settings import settings
from matching.catalog import NameDataset, load_profiles_json, read_csv
from matching.engine import CompanyResolver
from matching.models import MatchQuery

SAMPLE_COLUMNS = {
    "name": "input name",
    "website": "input website",
    "phone": "input phone",
    "facebook": "input_facebook",
}


def row_to_query(row: dict) -> MatchQuery:
    values = {
        field: (row.get(column) or "").strip() or None
        for field, column in SAMPLE_COLUMNS.items()
    }
    return MatchQuery(**values)


def main():
    parser = argparse.ArgumentParser(description="Evaluate the resolver on sample inputs")
    parser.add_argument("--input", default=settings.SAMPLE_INPUT, help="Sample input CSV")
    parser.add_argument("--profiles", default=settings.PROFILES_PATH, help="Profiles JSON")
    parser.add_argument("--limit", type=int, default=0, help="Only the first N rows (0 = all)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Print every row")

    args = parser.parse_args()

    for path in (args.input, args.profiles):
        if not Path(path).exists():
            print(f"Error: file not found: {path}")
            sys.exit(1)

    rows = read_csv(args.input)
    if args.limit:
        rows = rows[: args.limit]

    resolver = CompanyResolver(
        load_profiles_json(args.profiles),
        names=NameDataset(settings.NAMES_INPUT, settings.FUZZY_LOOSE_THRESHOLD),
    )

    positive = 0
    skipped = 0
    tiers = Counter()

    for i, row in enumerate(rows, 1):
        query = row_to_query(row)
        if query.is_empty:
            skipped += 1
            continue

        response = resolver.resolve(query)
        tiers[response.tier.value] += 1
        top = response.candidates[0] if response.candidates else None
        if top and top.score > 0:
            positive += 1

        if args.verbose:
            best = response.best.website if response.best else "-"
            top_score = f"{top.score:.2f}" if top else "-"
            print(f"{i:>4}. [{response.tier.value:<12}] {top_score:>6}  {query.text()[:50]:<50} -> {best}")

    evaluated = len(rows) - skipped

    print("\n" + "=" * 60)
    print("SAMPLE EVALUATION")
    print("=" * 60)
    print(f"Catalog profiles:   {resolver.profile_count}")
    print(f"Rows evaluated:     {evaluated} (skipped {skipped} empty)")
    if evaluated:
        print(f"Positive top score: {positive} ({positive / evaluated:.0%})")
    print("Tier reached:")
    for tier, count in tiers.most_common():
        print(f"  {tier:<14} {count}")
    print("=" * 60)


if __name__ == "__main__":
    main()
