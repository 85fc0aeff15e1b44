#!/usr/bin/env python3
"""
Tests for the feature builder, exact-lookup indexes and text indexes.
"""

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from matching.engine.features import augment, build_features
from matching.engine.text_index import FuzzyIndex, TextIndex, tokenize
from matching.models import CompanyProfile


def sample_profiles():
    return [
        CompanyProfile.from_dict({
            "website": "https://acme.com",
            "name": "Acme Inc",
            "phones": ["+14155551212"],
            "social": {"facebook": ["https://facebook.com/acme"]},
            "address": "123 Market St",
        }),
        CompanyProfile.from_dict({
            "website": "https://contoso.com",
            "name": "Contoso LLC",
            "phones": ["+442071234567"],
            "address": "London",
        }),
        CompanyProfile.from_dict({
            "website": "https://www.acme-widgets.com/",
            "name": "Acme Widgets",
            "phones": ["(415) 555-0000", "415.555.0000"],
            "social": {"facebook": ["https://m.facebook.com/acmewidgets/", "https://www.facebook.com/acmewidgets"]},
        }),
    ]


def test_augmented_record_fields():
    records, _ = build_features(sample_profiles())
    acme = records[0]

    assert acme.position == 0
    assert acme.canonical_site == "acme.com"
    assert acme.host == "acme.com"
    assert acme.domain_tokens == {"acme"}
    assert acme.normalized_name == "acme inc"
    assert acme.name_tokens == {"acme"}
    assert acme.phone_keys == {"4155551212"}
    assert acme.social_handles == {"facebook.com/acme"}

    widgets = records[2]
    assert widgets.canonical_site == "acme-widgets.com"
    assert widgets.domain_tokens == {"acme", "widgets"}
    assert widgets.phone_keys == {"4155550000"}
    assert widgets.social_handles == {"facebook.com/acmewidgets"}
    print("✓ Augmented records carry canonical features")


def test_augment_is_pure():
    profile = sample_profiles()[0]
    assert augment(profile, 0) == augment(profile, 0)


def test_profile_without_name_or_phones():
    records, indexes = build_features([CompanyProfile(website="https://bare.io/")])
    bare = records[0]
    assert bare.normalized_name == ""
    assert bare.name_tokens == frozenset()
    assert bare.phone_keys == frozenset()
    assert bare.social_handles == frozenset()
    assert indexes.site("bare.io") == (0,)
    assert indexes.domain_token("bare") == (0,)


def test_exact_indexes():
    _, indexes = build_features(sample_profiles())

    assert indexes.site("acme.com") == (0,)
    assert indexes.site("acme-widgets.com") == (2,)
    assert indexes.phone("4155551212") == (0,)
    assert indexes.phone("2071234567") == (1,)
    assert indexes.phone("4155550000") == (2,)
    assert indexes.facebook("facebook.com/acme") == (0,)
    assert indexes.domain_token("acme") == (0, 2)
    assert indexes.domain_token("widgets") == (2,)
    print("✓ Exact-lookup maps built for site, phone, facebook, domain tokens")


def test_exact_index_misses():
    _, indexes = build_features(sample_profiles())
    assert indexes.site("nope.com") == ()
    assert indexes.phone("") == ()
    assert indexes.facebook("facebook.com/nope") == ()


def test_tokenize():
    assert tokenize("https://www.Acme-Widgets.com/") == ["https", "www", "acme", "widgets", "com"]
    assert tokenize("123 Market St.") == ["123", "market", "st"]
    assert tokenize(None) == []


def test_text_index_exact_and_prefix():
    records, _ = build_features(sample_profiles())
    index = TextIndex(records)

    assert index.search("acme") == [0, 2]
    assert index.search("wid") == [2]
    assert index.search("london") == [1]
    assert index.search("") == []
    print("✓ Text index prefix search")


def test_text_index_fuzzy_terms():
    records, _ = build_features(sample_profiles())
    index = TextIndex(records)

    # one edit allowed for six-letter terms
    assert index.search("contso") == [1]
    assert index.max_distance("ab") == 0
    assert index.max_distance("contso") == 1
    assert index.max_distance("incorporated") == 2
    print("✓ Text index fuzzy search")


def test_text_index_strict_when_fuzziness_zero():
    records, _ = build_features(sample_profiles())
    index = TextIndex(records, fuzziness=0.0, prefix=False)
    assert index.search("contso") == []
    assert index.search("contoso") == [1]


def test_fuzzy_index_strict():
    records, _ = build_features(sample_profiles())
    strict = FuzzyIndex.from_records(records, threshold=0.3)

    hits = strict.search("Acme Inc", limit=10)
    assert hits[0].position == 0
    assert hits[0].distance == 0.0
    assert strict.search("", limit=10) == []
    print("✓ Strict fuzzy index ranks identical values first")


def test_fuzzy_index_limit_and_order():
    records, _ = build_features(sample_profiles())
    loose = FuzzyIndex.from_records(records, threshold=0.6)

    hits = loose.search("acme", limit=1)
    assert len(hits) == 1

    hits = loose.search("acme", limit=10)
    distances = [h.distance for h in hits]
    assert distances == sorted(distances)
    assert len({h.position for h in hits}) == len(hits)


def test_fuzzy_index_empty():
    assert FuzzyIndex([], threshold=0.6).search("acme") == []


def test_text_index_ranks_by_matched_terms():
    records, _ = build_features(sample_profiles())
    index = TextIndex(records)

    # Acme Widgets matches both terms, Acme Inc only one
    assert index.search("acme widgets") == [2, 0]
    assert index.search("https acme") == [0, 2, 1]
