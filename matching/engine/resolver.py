"""
Company Resolver

Matches a partial company description (name, website, phone, facebook page)
to the best catalog profile.
"""

import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional, Sequence

from config.logging import logger
from config.settings import settings
from matching.engine.candidates import CandidateGenerator, ScoredCandidate, Tier
from matching.engine.features import AugmentedRecord, ExactIndexes, build_features
from matching.engine.ranking import RankOptions, rank
from matching.engine.text_index import FuzzyIndex, TextIndex
from matching.models import CompanyProfile, EmptyQueryError, MatchQuery, MatchRequest

if TYPE_CHECKING:
    from matching.catalog import NameDataset


@dataclass
class ResolverConfig:
    """Configuration for company resolution."""
    # Candidates kept from the signal union before scoring
    max_candidates: int = 2000

    # Records scored by the brute-force tier before sampling kicks in
    max_brute_force: int = 5000

    # Text index term fuzziness, as a fraction of term length
    text_fuzziness: float = 0.2

    # Fuzzy tier distance thresholds (0 = identical, 1 = unrelated)
    strict_threshold: float = 0.3
    loose_threshold: float = 0.6

    default_per_page: int = 10

    @classmethod
    def from_settings(cls) -> "ResolverConfig":
        return cls(
            max_candidates=settings.MAX_CANDIDATES,
            max_brute_force=settings.MAX_BRUTE_FORCE,
            text_fuzziness=settings.TEXT_FUZZINESS,
            strict_threshold=settings.FUZZY_STRICT_THRESHOLD,
            loose_threshold=settings.FUZZY_LOOSE_THRESHOLD,
            default_per_page=settings.DEFAULT_PER_PAGE,
        )


@dataclass(frozen=True)
class CatalogSnapshot:
    """Everything built from one catalog load. Never mutated once published."""
    profiles: tuple[CompanyProfile, ...]
    records: tuple[AugmentedRecord, ...]
    indexes: ExactIndexes
    text_index: TextIndex
    strict_index: FuzzyIndex
    loose_index: FuzzyIndex

    @classmethod
    def build(cls, profiles: Sequence[CompanyProfile], config: ResolverConfig) -> "CatalogSnapshot":
        records, indexes = build_features(profiles)
        return cls(
            profiles=tuple(profiles),
            records=tuple(records),
            indexes=indexes,
            text_index=TextIndex(records, fuzziness=config.text_fuzziness),
            strict_index=FuzzyIndex.from_records(records, config.strict_threshold),
            loose_index=FuzzyIndex.from_records(records, config.loose_threshold),
        )


@dataclass
class MatchResponse:
    """Best profile, one page of candidates, and paging metadata."""
    best: Optional[CompanyProfile]
    candidates: list[ScoredCandidate]
    tier: Tier
    options: RankOptions
    total: int = 0
    total_pages: int = 1
    page: int = 1
    timings: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "best": self.best.to_dict() if self.best else None,
            "candidates": [
                {"profile": c.profile.to_dict(), "score": c.score} for c in self.candidates
            ],
            "meta": {
                "total": self.total,
                "totalPages": self.total_pages,
                "page": self.page,
                "perPage": self.options.per_page,
                "sort": self.options.sort,
                "dir": self.options.dir,
                "minScore": self.options.min_score,
                "contains": self.options.contains,
                "tier": self.tier.value,
                "timings": self.timings,
            },
        }


class CompanyResolver:
    """
    Resolves partial company descriptions against a fixed catalog.

    Resolution strategy:
    1. Union exact-key hits (site, phone, facebook, domain tokens) with text hits
    2. Score every candidate with the additive scorer
    3. Escalate through fuzzy, brute-force and name-dataset tiers when
       nothing scores
    4. Filter, sort and paginate; best is the top of the sorted list

    The catalog snapshot is read-only and shared by concurrent calls.

    Usage:
        resolver = CompanyResolver(load_profiles_json("out/profiles.json"))
        response = resolver.resolve(MatchQuery(website="https://acme.com"))
        if response.best:
            profile = response.best
    """

    def __init__(
        self,
        profiles: Sequence[CompanyProfile],
        config: Optional[ResolverConfig] = None,
        names: Optional["NameDataset"] = None,
    ):
        self.config = config or ResolverConfig.from_settings()
        self.names = names
        self._snapshot = self._build(profiles)
        self._generator = self._make_generator(self._snapshot)

    def _build(self, profiles: Sequence[CompanyProfile]) -> CatalogSnapshot:
        start = time.perf_counter()
        snapshot = CatalogSnapshot.build(profiles, self.config)
        logger.info(
            f"Catalog ready: {len(snapshot.records)} profiles, "
            f"{len(snapshot.text_index)} text terms "
            f"({(time.perf_counter() - start) * 1000:.0f} ms)"
        )
        return snapshot

    def _make_generator(self, snapshot: CatalogSnapshot) -> CandidateGenerator:
        return CandidateGenerator(
            records=snapshot.records,
            indexes=snapshot.indexes,
            text_index=snapshot.text_index,
            strict_index=snapshot.strict_index,
            loose_index=snapshot.loose_index,
            max_candidates=self.config.max_candidates,
            max_brute_force=self.config.max_brute_force,
            names=self.names,
        )

    @property
    def snapshot(self) -> CatalogSnapshot:
        return self._snapshot

    @property
    def profile_count(self) -> int:
        return len(self._snapshot.profiles)

    def reload(self, profiles: Sequence[CompanyProfile]) -> None:
        """Build a new snapshot off to the side, then swap it in."""
        snapshot = self._build(profiles)
        generator = self._make_generator(snapshot)
        # in-flight calls keep the generator they already read
        self._snapshot, self._generator = snapshot, generator

    def resolve(self, query: MatchQuery, options: Optional[RankOptions] = None) -> MatchResponse:
        """
        Find the best catalog profiles for a query.

        Args:
            query: Identifying fields; at least one must be present
            options: Filtering, sorting and paging of the candidate list

        Returns:
            MatchResponse with best profile and one page of candidates

        Raises:
            EmptyQueryError: if the query has no identifying field
        """
        if query.is_empty:
            raise EmptyQueryError("Provide at least one of: name, website, phone, facebook")

        options = options or RankOptions(per_page=self.config.default_per_page)
        generator = self._generator

        t0 = time.perf_counter()
        result = generator.generate(query)
        t1 = time.perf_counter()
        page = rank(result.candidates, options)
        t2 = time.perf_counter()

        logger.debug(
            f"Resolved {query} via {result.tier.value}: "
            f"{page.total} candidates, best={page.best.website if page.best else None}"
        )

        return MatchResponse(
            best=page.best,
            candidates=page.items,
            tier=result.tier,
            options=options,
            total=page.total,
            total_pages=page.total_pages,
            page=page.page,
            timings={
                "gatherMs": round((t1 - t0) * 1000, 2),
                "finalizeMs": round((t2 - t1) * 1000, 2),
                "totalMs": round((t2 - t0) * 1000, 2),
            },
        )

    def resolve_request(self, request: MatchRequest) -> MatchResponse:
        """Resolve raw validated request parameters."""
        options = RankOptions(
            page=request.page_number(),
            per_page=request.page_size(self.config.default_per_page),
            sort=request.sort,
            dir=request.dir,
            min_score=request.score_floor(),
            contains=request.contains or "",
        )
        return self.resolve(request.to_query(), options)
