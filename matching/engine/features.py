"""
Precomputed per-record features and the exact-lookup indexes built from them.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from matching.engine import canonical
from matching.models import CompanyProfile


@dataclass(frozen=True)
class AugmentedRecord:
    """A catalog profile plus the canonical fields used for matching."""
    position: int
    profile: CompanyProfile
    canonical_site: str
    host: str
    domain_tokens: frozenset[str]
    normalized_name: str
    name_tokens: frozenset[str]
    phone_keys: frozenset[str]
    social_handles: frozenset[str]


def augment(profile: CompanyProfile, position: int) -> AugmentedRecord:
    """Derive matching features. Pure: the same profile always yields the same record."""
    host = canonical.extract_host(profile.website) if profile.website else ""
    normalized_name = canonical.normalize_name(profile.name) if profile.name else ""

    return AugmentedRecord(
        position=position,
        profile=profile,
        canonical_site=canonical.canonical_website(profile.website),
        host=host,
        domain_tokens=canonical.domain_tokens(host) if host else frozenset(),
        normalized_name=normalized_name,
        name_tokens=canonical.name_tokens(normalized_name),
        phone_keys=frozenset(
            key for key in map(canonical.phone_key, profile.phones) if key
        ),
        social_handles=frozenset(
            handle for handle in map(canonical.canonical_facebook, profile.facebook_urls)
            if handle
        ),
    )


@dataclass(frozen=True)
class ExactIndexes:
    """
    Canonical key -> record positions, one mapping per signal.

    Position tuples are ascending and duplicate-free.
    """
    by_site: dict[str, tuple[int, ...]] = field(default_factory=dict)
    by_phone: dict[str, tuple[int, ...]] = field(default_factory=dict)
    by_facebook: dict[str, tuple[int, ...]] = field(default_factory=dict)
    by_domain_token: dict[str, tuple[int, ...]] = field(default_factory=dict)

    def site(self, key: str) -> tuple[int, ...]:
        return self.by_site.get(key, ()) if key else ()

    def phone(self, key: str) -> tuple[int, ...]:
        return self.by_phone.get(key, ()) if key else ()

    def facebook(self, key: str) -> tuple[int, ...]:
        return self.by_facebook.get(key, ()) if key else ()

    def domain_token(self, key: str) -> tuple[int, ...]:
        return self.by_domain_token.get(key, ()) if key else ()


def _add_all(mapping: dict, keys: Iterable[str], position: int) -> None:
    for key in sorted(keys):
        if key:
            mapping[key].append(position)


def _freeze(mapping: dict) -> dict[str, tuple[int, ...]]:
    return {key: tuple(positions) for key, positions in mapping.items()}


def build_features(
    profiles: Sequence[CompanyProfile],
) -> tuple[list[AugmentedRecord], ExactIndexes]:
    """
    Augment every profile and build the four exact-lookup maps.

    Records are positional: ``records[i]`` belongs to ``profiles[i]``.
    """
    records = []
    by_site = defaultdict(list)
    by_phone = defaultdict(list)
    by_facebook = defaultdict(list)
    by_domain_token = defaultdict(list)

    for position, profile in enumerate(profiles):
        record = augment(profile, position)
        records.append(record)

        _add_all(by_site, [record.canonical_site], position)
        _add_all(by_phone, record.phone_keys, position)
        _add_all(by_facebook, record.social_handles, position)
        _add_all(by_domain_token, record.domain_tokens, position)

    indexes = ExactIndexes(
        by_site=_freeze(by_site),
        by_phone=_freeze(by_phone),
        by_facebook=_freeze(by_facebook),
        by_domain_token=_freeze(by_domain_token),
    )
    return records, indexes
