"""
Additive confidence scoring for a (query, record) pair.

Points per signal:

    website   canonical site equal                       +5
    name      normalized string equal                    +3
              else token Jaccard >=.8/.5/.3/.25          +2/+1.5/+1/+.5
              plus edit ratio >=.9/.8                    +1.5/+1
    domain    token Jaccard >=.8/.6/.4/.25               +2/+1.5/+1/+.5
    phone     last-10 key in record's phone keys         +3
    facebook  canonical handle in record's handles       +4

Point values are halves, so sums are exact in binary floating point.
"""

from dataclasses import dataclass
from typing import AbstractSet

from rapidfuzz.distance import Levenshtein

from matching.engine import canonical
from matching.engine.features import AugmentedRecord
from matching.models import MatchQuery

WEBSITE_POINTS = 5.0
NAME_EXACT_POINTS = 3.0
PHONE_POINTS = 3.0
FACEBOOK_POINTS = 4.0

# (minimum similarity, points), checked top-down, first hit wins
NAME_JACCARD_BUCKETS = ((0.8, 2.0), (0.5, 1.5), (0.3, 1.0), (0.25, 0.5))
NAME_EDIT_BUCKETS = ((0.9, 1.5), (0.8, 1.0))
DOMAIN_JACCARD_BUCKETS = ((0.8, 2.0), (0.6, 1.5), (0.4, 1.0), (0.25, 0.5))


@dataclass(frozen=True)
class QueryFeatures:
    """Canonical forms of a query, computed once per request."""
    canonical_site: str = ""
    host: str = ""
    domain_tokens: frozenset[str] = frozenset()
    normalized_name: str = ""
    name_tokens: frozenset[str] = frozenset()
    phone_key: str = ""
    facebook_handle: str = ""

    @classmethod
    def from_query(cls, query: MatchQuery) -> "QueryFeatures":
        host = canonical.extract_host(query.website) if query.website else ""
        normalized_name = canonical.normalize_name(query.name) if query.name else ""
        return cls(
            canonical_site=canonical.canonical_website(query.website) if query.website else "",
            host=host,
            domain_tokens=canonical.domain_tokens(host) if host else frozenset(),
            normalized_name=normalized_name,
            name_tokens=canonical.name_tokens(normalized_name),
            phone_key=canonical.phone_key(query.phone) if query.phone else "",
            facebook_handle=canonical.canonical_facebook(query.facebook) if query.facebook else "",
        )


def jaccard(a: AbstractSet[str], b: AbstractSet[str]) -> float:
    """|A & B| / |A | B|; 0 when either set is empty."""
    if not a or not b:
        return 0.0
    inter = len(a & b)
    return inter / (len(a) + len(b) - inter)


def edit_ratio(a: str, b: str) -> float:
    """1 - levenshtein(a, b) / max(len(a), len(b)); 1 for two empty strings."""
    return Levenshtein.normalized_similarity(a, b)


def bucket_points(value: float, buckets) -> float:
    for minimum, points in buckets:
        if value >= minimum:
            return points
    return 0.0


def name_points(query: QueryFeatures, record: AugmentedRecord) -> float:
    if not query.normalized_name or not record.normalized_name:
        return 0.0
    if query.normalized_name == record.normalized_name:
        return NAME_EXACT_POINTS

    points = bucket_points(jaccard(query.name_tokens, record.name_tokens), NAME_JACCARD_BUCKETS)
    points += bucket_points(
        edit_ratio(query.normalized_name, record.normalized_name), NAME_EDIT_BUCKETS
    )
    return points


def score(query: QueryFeatures, record: AugmentedRecord) -> float:
    """Non-negative additive score. Pure function of precomputed features."""
    total = 0.0

    if query.canonical_site and query.canonical_site == record.canonical_site:
        total += WEBSITE_POINTS

    total += name_points(query, record)

    if query.domain_tokens and record.domain_tokens:
        total += bucket_points(
            jaccard(query.domain_tokens, record.domain_tokens), DOMAIN_JACCARD_BUCKETS
        )

    if query.phone_key and query.phone_key in record.phone_keys:
        total += PHONE_POINTS

    if query.facebook_handle and query.facebook_handle in record.social_handles:
        total += FACEBOOK_POINTS

    return total
