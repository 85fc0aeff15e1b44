"""
Catalog I/O.

- Reading the name dataset CSV and crawler JSON
- Merging them into company profiles
- Persisting profiles as JSON or in the catalog table
- Lazily loading the name dataset for the last-resort name search
"""

import csv
import json
import threading
from pathlib import Path
from typing import Optional, Sequence
from urllib.parse import urlsplit, urlunsplit

from sqlalchemy.orm import Session

from config.logging import logger
from matching.engine.text_index import FuzzyIndex
from matching.models import CompanyProfile, CompanyRecord

WEBSITE_COLUMNS = ("website", "domain", "url")
NAME_COLUMNS = ("name", "company_name")


def read_csv(path) -> list[dict[str, str]]:
    """Rows of a headed CSV file as dicts, skipping blank lines."""
    with open(path, newline="", encoding="utf-8-sig") as f:
        return [row for row in csv.DictReader(f) if any((v or "").strip() for v in row.values())]


def _first(row: dict, columns: Sequence[str]) -> str:
    for column in columns:
        value = (row.get(column) or "").strip()
        if value:
            return value
    return ""


def merge_key(url: str) -> str:
    """URL key used to join crawled rows with the name dataset."""
    url = (url or "").strip()
    if not url:
        return ""
    try:
        parts = urlsplit(url if url.startswith("http") else f"https://{url}")
    except ValueError:
        return url
    if not parts.hostname:
        return url
    path = parts.path[:-1] if parts.path.endswith("/") else parts.path
    return urlunsplit((parts.scheme, parts.netloc.lower(), path, parts.query, ""))


def merge_profiles(name_rows: Sequence[dict], scraped_rows: Sequence[dict]) -> list[CompanyProfile]:
    """
    Join crawled rows with company names by website.

    Output order follows the crawled rows.
    """
    name_by_key = {}
    for row in name_rows:
        key = merge_key(_first(row, WEBSITE_COLUMNS))
        name = _first(row, NAME_COLUMNS)
        if key and name:
            name_by_key[key] = name

    merged = []
    for row in scraped_rows:
        website = (row.get("website") or "").strip()
        if not website:
            continue
        merged.append(CompanyProfile.from_dict({
            "website": website,
            "name": name_by_key.get(merge_key(website)),
            "phones": row.get("phones") or [],
            "social": row.get("social") or {},
            "address": row.get("address"),
        }))

    named = sum(1 for p in merged if p.name)
    logger.info(f"Merged {len(merged)} profiles ({named} with names)")
    return merged


def load_scraped(path) -> list[dict]:
    """Crawler output: either ``{"data": [...]}`` or a bare list."""
    with open(path, encoding="utf-8") as f:
        raw = json.load(f)
    return raw.get("data", []) if isinstance(raw, dict) else raw


def _valid_profiles(rows: Sequence[dict]) -> list[CompanyProfile]:
    profiles = []
    for i, row in enumerate(rows):
        profile = CompanyProfile.from_dict(row)
        if not profile.website:
            logger.warning(f"Skipping catalog row {i}: missing website")
            continue
        profiles.append(profile)
    return profiles


def load_profiles_json(path) -> list[CompanyProfile]:
    """
    Load the catalog from JSON: a list of profiles, or ``{"profiles": [...]}``.

    Raises FileNotFoundError when the catalog file is missing.
    """
    with open(path, encoding="utf-8") as f:
        raw = json.load(f)
    rows = raw.get("profiles", []) if isinstance(raw, dict) else raw
    profiles = _valid_profiles(rows)
    logger.info(f"Loaded {len(profiles)} profiles from {path}")
    return profiles


def write_profiles_json(path, profiles: Sequence[CompanyProfile]) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump([p.to_dict() for p in profiles], f, indent=2, ensure_ascii=False)


def save_profiles(db: Session, profiles: Sequence[CompanyProfile]) -> int:
    """Replace the stored catalog. Positions follow list order."""
    db.query(CompanyRecord).delete()
    for position, profile in enumerate(profiles):
        db.add(CompanyRecord(
            position=position,
            website=profile.website,
            name=profile.name,
            phones=list(profile.phones),
            social={network: list(urls) for network, urls in profile.social.items()},
            address=profile.address,
        ))
    db.commit()
    logger.info(f"Stored {len(profiles)} profiles")
    return len(profiles)


def load_profiles(db: Session) -> list[CompanyProfile]:
    """Stored catalog in position order."""
    records = db.query(CompanyRecord).order_by(CompanyRecord.position).all()
    profiles = _valid_profiles([
        {
            "website": r.website,
            "name": r.name,
            "phones": r.phones,
            "social": r.social,
            "address": r.address,
        }
        for r in records
    ])
    logger.info(f"Loaded {len(profiles)} profiles from catalog table")
    return profiles


class NameDataset:
    """
    The ``{website, name}`` dataset used at build time, searchable as a last
    resort when the catalog yields nothing.

    Loaded on first use and kept for the lifetime of the instance. A missing
    or unreadable file gives an empty dataset.
    """

    def __init__(self, path: Optional[str], threshold: float = 0.6):
        self.path = path
        self.threshold = threshold
        self._lock = threading.Lock()
        self._rows: Optional[list[CompanyProfile]] = None
        self._index: Optional[FuzzyIndex] = None

    def _load(self) -> None:
        rows = []
        if self.path:
            try:
                for row in read_csv(self.path):
                    website = _first(row, WEBSITE_COLUMNS)
                    if website:
                        rows.append(CompanyProfile(website=website, name=_first(row, NAME_COLUMNS) or None))
            except (OSError, csv.Error, UnicodeDecodeError) as e:
                logger.warning(f"Name dataset unavailable ({self.path}): {e}")
                rows = []
        self._index = FuzzyIndex(
            ((i, [p.name or "", p.website]) for i, p in enumerate(rows)),
            self.threshold,
        )
        self._rows = rows
        logger.info(f"Name dataset loaded: {len(rows)} rows")

    @property
    def rows(self) -> list[CompanyProfile]:
        if self._rows is None:
            with self._lock:
                if self._rows is None:
                    self._load()
        return self._rows

    def search(self, query: str, limit: int = 10) -> list[tuple[int, CompanyProfile, float]]:
        """(row index, stub profile, distance) for the best rows."""
        rows = self.rows
        return [(hit.position, rows[hit.position], hit.distance) for hit in self._index.search(query, limit)]
