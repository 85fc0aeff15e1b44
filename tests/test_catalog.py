#!/usr/bin/env python3
"""
Tests for catalog merge, JSON persistence, the catalog table and the name
dataset.
"""

import json
import sys
import threading
import time
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from matching.catalog import (
    NameDataset,
    load_profiles,
    load_profiles_json,
    load_scraped,
    merge_key,
    merge_profiles,
    read_csv,
    save_profiles,
    write_profiles_json,
)
from matching.database import init_db
from matching.models import CompanyProfile, CompanyRecord

NAMES_CSV = """\ufeffdomain,company_name
acme.com,Acme Inc
https://contoso.com/,Contoso LLC

,
"""


def sample_profiles():
    return [
        CompanyProfile.from_dict({
            "website": "https://acme.com",
            "name": "Acme Inc",
            "phones": ["+14155551212"],
            "social": {"facebook": ["https://facebook.com/acme"]},
            "address": "123 Market St",
        }),
        CompanyProfile.from_dict({"website": "https://contoso.com", "phones": []}),
    ]


@pytest.fixture
def db():
    """In-memory catalog store."""
    engine = create_engine("sqlite://")
    init_db(bind=engine)
    session = sessionmaker(bind=engine)()
    yield session
    session.close()


def test_merge_key():
    assert merge_key("acme.com") == "https://acme.com"
    assert merge_key("https://Acme.com/about/#team") == "https://acme.com/about"
    assert merge_key("http://acme.com/") == "http://acme.com"
    assert merge_key("") == ""


def test_merge_profiles():
    name_rows = [
        {"domain": "acme.com", "company_name": "Acme Inc"},
        {"website": "https://contoso.com/", "name": "Contoso LLC"},
    ]
    scraped = [
        {"website": "https://acme.com/", "phones": ["+14155551212"], "social": {"facebook": ["https://facebook.com/acme"]}},
        {"website": "", "phones": ["+10000000000"]},
        {"website": "https://contoso.com", "address": "London"},
        {"website": "https://unknown.io"},
    ]

    profiles = merge_profiles(name_rows, scraped)

    assert [p.website for p in profiles] == [
        "https://acme.com/",
        "https://contoso.com",
        "https://unknown.io",
    ]
    assert profiles[0].name == "Acme Inc"
    assert profiles[0].phones == ("+14155551212",)
    assert profiles[0].facebook_urls == ("https://facebook.com/acme",)
    assert profiles[1].name == "Contoso LLC"
    assert profiles[1].address == "London"
    assert profiles[2].name is None
    print("✓ Crawled rows joined with names by website")


def test_profile_from_dict_cleans_values():
    profile = CompanyProfile.from_dict({
        "website": " https://acme.com ",
        "name": "  ",
        "phones": "+14155551212",
        "social": {"facebook": "https://facebook.com/acme", "twitter": [], "linkedin": ["", None]},
    })
    assert profile.website == "https://acme.com"
    assert profile.name is None
    assert profile.phones == ("+14155551212",)
    assert profile.social == {"facebook": ("https://facebook.com/acme",)}


def test_json_round_trip(tmp_path):
    path = tmp_path / "out" / "profiles.json"
    write_profiles_json(path, sample_profiles())

    assert load_profiles_json(path) == sample_profiles()

    raw = json.loads(path.read_text(encoding="utf-8"))
    assert "name" not in raw[1]


def test_load_profiles_json_wrapped_and_invalid_rows(tmp_path):
    path = tmp_path / "profiles.json"
    path.write_text(json.dumps({"profiles": [
        {"website": "https://acme.com", "name": "Acme Inc"},
        {"name": "No Website"},
        {"website": "   "},
    ]}), encoding="utf-8")

    profiles = load_profiles_json(path)
    assert [p.website for p in profiles] == ["https://acme.com"]


def test_load_profiles_json_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_profiles_json(tmp_path / "nope.json")


def test_load_scraped(tmp_path):
    wrapped = tmp_path / "wrapped.json"
    wrapped.write_text(json.dumps({"data": [{"website": "https://acme.com"}]}), encoding="utf-8")
    bare = tmp_path / "bare.json"
    bare.write_text(json.dumps([{"website": "https://contoso.com"}]), encoding="utf-8")

    assert load_scraped(wrapped) == [{"website": "https://acme.com"}]
    assert load_scraped(bare) == [{"website": "https://contoso.com"}]


def test_read_csv_skips_blank_rows(tmp_path):
    path = tmp_path / "names.csv"
    path.write_text(NAMES_CSV, encoding="utf-8")

    rows = read_csv(path)
    assert rows == [
        {"domain": "acme.com", "company_name": "Acme Inc"},
        {"domain": "https://contoso.com/", "company_name": "Contoso LLC"},
    ]


def test_catalog_table_round_trip(db):
    assert save_profiles(db, sample_profiles()) == 2
    assert load_profiles(db) == sample_profiles()

    # saving again replaces the stored catalog
    save_profiles(db, sample_profiles()[1:])
    assert db.query(CompanyRecord).count() == 1
    assert [p.website for p in load_profiles(db)] == ["https://contoso.com"]
    print("✓ Catalog table stores profiles in order")


def test_name_dataset(tmp_path):
    path = tmp_path / "names.csv"
    path.write_text(NAMES_CSV, encoding="utf-8")
    names = NameDataset(str(path), threshold=0.6)

    assert [p.name for p in names.rows] == ["Acme Inc", "Contoso LLC"]

    hits = names.search("Contoso", limit=5)
    assert hits
    index, stub, distance = hits[0]
    assert index == 1
    assert stub.website == "https://contoso.com/"
    assert stub.name == "Contoso LLC"
    assert 0 <= distance <= 0.6
    print("✓ Name dataset searchable as a fallback")


def test_name_dataset_missing_file(tmp_path):
    names = NameDataset(str(tmp_path / "missing.csv"))
    assert names.rows == []
    assert names.search("Acme") == []

    assert NameDataset(None).search("Acme") == []


def test_name_dataset_loads_once_under_concurrency(tmp_path):
    path = tmp_path / "names.csv"
    path.write_text(NAMES_CSV, encoding="utf-8")

    class CountingNames(NameDataset):
        loads = 0

        def _load(self):
            CountingNames.loads += 1
            time.sleep(0.05)
            super()._load()

    names = CountingNames(str(path))
    barrier = threading.Barrier(8)
    results = []

    def first_request():
        barrier.wait()
        results.append(names.search("Contoso", limit=5))

    threads = [threading.Thread(target=first_request) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert CountingNames.loads == 1
    assert len(results) == 8
    assert all(r == results[0] for r in results)
    assert results[0][0][0] == 1
    print("✓ Name dataset loaded once for concurrent first requests")
