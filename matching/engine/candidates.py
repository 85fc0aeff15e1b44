"""
Candidate discovery: an escalation cascade over five tiers.

    SIGNAL_UNION   exact-lookup hits + text-index hits for every present field
    STRICT_FUZZY   only when the union is empty: strict fuzzy top 20
    SAFETY_NET     when scored candidates are empty or all zero:
                   strict fuzzy top 10, else loose fuzzy top 10,
                   scored from the fuzzy distance
    BRUTE_FORCE    when both fuzzy tiers are empty: score the catalog
                   (or a strided sample) and keep the top 10
    NAME_ONLY      when nothing is left: loose fuzzy over the auxiliary
                   name dataset, returning bare stubs

A tier's result is accepted when it is non-empty and at least one score is
positive; the last two tiers are terminal either way.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol, Sequence

from config.logging import get_logger
from matching.engine import canonical
from matching.engine.features import AugmentedRecord, ExactIndexes
from matching.engine.scorer import QueryFeatures, score
from matching.engine.text_index import FuzzyIndex, TextIndex
from matching.models import CompanyProfile, MatchQuery

logger = get_logger("candidates")

STRICT_FUZZY_LIMIT = 20
FALLBACK_LIMIT = 10

# Fuzzy-only scores: max(floor, (1 - distance) * scale)
FUZZY_SCORE_FLOOR = 0.1
SAFETY_NET_SCALE = 0.5
NAME_ONLY_SCALE = 0.4


class Tier(Enum):
    """Cascade tier that produced a candidate list."""
    SIGNAL_UNION = "signal_union"
    STRICT_FUZZY = "strict_fuzzy"
    SAFETY_NET = "safety_net"
    BRUTE_FORCE = "brute_force"
    NAME_ONLY = "name_only"


@dataclass(frozen=True)
class ScoredCandidate:
    """A scored catalog position. ``index`` is unique within one result."""
    index: int
    score: float
    profile: CompanyProfile


@dataclass
class CascadeResult:
    tier: Tier
    candidates: list[ScoredCandidate]
    truncated: bool = False


class NameSearch(Protocol):
    def search(self, query: str, limit: int) -> list[tuple[int, CompanyProfile, float]]:
        ...


def is_acceptable(candidates: Sequence[ScoredCandidate]) -> bool:
    """Non-empty and not all zero."""
    return any(c.score > 0 for c in candidates)


def fuzzy_score(distance: float, scale: float) -> float:
    return max(FUZZY_SCORE_FLOOR, (1.0 - distance) * scale)


class CandidateGenerator:
    """
    Runs the cascade for one query against a read-only catalog snapshot.

    Holds no per-request state, so one instance serves concurrent requests.
    """

    def __init__(
        self,
        records: Sequence[AugmentedRecord],
        indexes: ExactIndexes,
        text_index: TextIndex,
        strict_index: FuzzyIndex,
        loose_index: FuzzyIndex,
        max_candidates: int = 2000,
        max_brute_force: int = 5000,
        names: Optional[NameSearch] = None,
    ):
        self.records = records
        self.indexes = indexes
        self.text_index = text_index
        self.strict_index = strict_index
        self.loose_index = loose_index
        self.max_candidates = max_candidates
        self.max_brute_force = max_brute_force
        self.names = names

    # Tier 1

    def signal_union(self, query: MatchQuery, features: QueryFeatures) -> list[int]:
        """Positions from every present field: exact-key hits, then text hits."""
        found = {}
        domain_terms = canonical.domain_token_list(features.host) if query.website else []

        def add(positions):
            for position in positions:
                found.setdefault(position, None)

        # exact keys go first; cap() keeps a prefix
        if query.website:
            add(self.indexes.site(features.canonical_site))
            # the input host may differ from the indexed one but share brand tokens
            for token in domain_terms:
                add(self.indexes.domain_token(token))

        if query.phone:
            add(self.indexes.phone(features.phone_key))

        if query.facebook:
            add(self.indexes.facebook(features.facebook_handle))

        # one ranked text search; records matching more terms come first
        text = [query.name or "", query.website or ""]
        text.extend(domain_terms)
        if query.facebook:
            # brand names embedded in vanity URLs, e.g. facebook.com/total.seal
            text.extend(canonical.handle_tokens(query.facebook))
        add(self.text_index.search(" ".join(t for t in text if t)))

        return list(found)

    # Tier 2

    def strict_fuzzy(self, query: MatchQuery) -> list[int]:
        return [hit.position for hit in self.strict_index.search(query.text(), STRICT_FUZZY_LIMIT)]

    def cap(self, positions: list[int]) -> tuple[list[int], bool]:
        """Keep the first ``max_candidates`` positions."""
        if len(positions) <= self.max_candidates:
            return positions, False
        logger.info(
            f"Candidate set capped: {len(positions)} -> {self.max_candidates}"
        )
        return positions[: self.max_candidates], True

    def score_positions(
        self, features: QueryFeatures, positions: Sequence[int]
    ) -> list[ScoredCandidate]:
        return [
            ScoredCandidate(i, score(features, self.records[i]), self.records[i].profile)
            for i in positions
        ]

    # Tier 3

    def safety_net(self, query: MatchQuery) -> list[ScoredCandidate]:
        text = query.text()
        hits = self.strict_index.search(text, FALLBACK_LIMIT)
        if not hits:
            hits = self.loose_index.search(text, FALLBACK_LIMIT)
        return [
            ScoredCandidate(
                hit.position,
                fuzzy_score(hit.distance, SAFETY_NET_SCALE),
                self.records[hit.position].profile,
            )
            for hit in hits
        ]

    # Tier 4

    def brute_force_positions(self) -> range:
        """Every position, or an evenly strided sample of at most ``max_brute_force``."""
        total = len(self.records)
        if total <= self.max_brute_force:
            return range(total)
        step = max(1, total // self.max_brute_force)
        logger.info(f"Brute force sampling every {step}th of {total} records")
        return range(0, total, step)[: self.max_brute_force]

    def brute_force(self, features: QueryFeatures) -> list[ScoredCandidate]:
        scored = self.score_positions(features, self.brute_force_positions())
        scored.sort(key=lambda c: (-c.score, c.index))
        return scored[:FALLBACK_LIMIT]

    # Tier 5

    def name_only(self, query: MatchQuery) -> list[ScoredCandidate]:
        if self.names is None:
            return []
        return [
            ScoredCandidate(i, fuzzy_score(distance, NAME_ONLY_SCALE), stub)
            for i, stub, distance in self.names.search(query.text(), FALLBACK_LIMIT)
        ]

    def generate(self, query: MatchQuery) -> CascadeResult:
        """Run tiers in order until one yields an acceptable list."""
        features = QueryFeatures.from_query(query)

        tier = Tier.SIGNAL_UNION
        positions = self.signal_union(query, features)
        if not positions:
            tier = Tier.STRICT_FUZZY
            positions = self.strict_fuzzy(query)

        positions, truncated = self.cap(positions)
        scored = self.score_positions(features, positions)

        if not is_acceptable(scored):
            logger.debug(f"{tier.value} gave {len(scored)} candidates, none scoring; escalating")
            tier = Tier.SAFETY_NET
            scored = self.safety_net(query)
            if not scored:
                tier = Tier.BRUTE_FORCE
                scored = self.brute_force(features)

        if not scored:
            tier = Tier.NAME_ONLY
            scored = self.name_only(query)

        logger.debug(f"Cascade settled on {tier.value} with {len(scored)} candidates")
        return CascadeResult(tier=tier, candidates=scored, truncated=truncated)
