"""
Filtering, ordering and pagination of scored candidates.
"""

import math
from dataclasses import dataclass
from typing import Optional, Sequence

from matching.engine.candidates import ScoredCandidate
from matching.models import CompanyProfile

MIN_PER_PAGE = 5
MAX_PER_PAGE = 50
SORT_KEYS = ("score", "name", "website")
SORT_DIRS = ("asc", "desc")


@dataclass(frozen=True)
class RankOptions:
    page: int = 1
    per_page: int = 10
    sort: str = "score"
    dir: str = "desc"
    min_score: float = 0.0
    contains: str = ""

    def __post_init__(self):
        # frozen: normalize through object.__setattr__
        object.__setattr__(self, "page", max(1, int(self.page)))
        object.__setattr__(
            self, "per_page", min(MAX_PER_PAGE, max(MIN_PER_PAGE, int(self.per_page)))
        )
        if self.sort not in SORT_KEYS:
            object.__setattr__(self, "sort", "score")
        if self.dir not in SORT_DIRS:
            object.__setattr__(self, "dir", "desc")
        object.__setattr__(self, "contains", (self.contains or "").lower().strip())


@dataclass(frozen=True)
class RankedPage:
    items: list[ScoredCandidate]
    total: int
    total_pages: int
    page: int
    best: Optional[CompanyProfile]


def _sort_value(candidate: ScoredCandidate, key: str):
    if key == "name":
        return (candidate.profile.name or "").casefold()
    if key == "website":
        return (candidate.profile.website or "").casefold()
    return candidate.score


def apply_filters(
    candidates: Sequence[ScoredCandidate], options: RankOptions
) -> list[ScoredCandidate]:
    kept = list(candidates)
    if options.min_score > 0:
        kept = [c for c in kept if c.score >= options.min_score]
    if options.contains:
        needle = options.contains
        kept = [
            c for c in kept
            if needle in (c.profile.name or "").lower()
            or needle in (c.profile.website or "").lower()
        ]
    return kept


def order(candidates: Sequence[ScoredCandidate], options: RankOptions) -> list[ScoredCandidate]:
    """
    Sort by the chosen key; equal keys fall back to ascending catalog
    position whatever the direction.
    """
    ordered = sorted(candidates, key=lambda c: c.index)
    # Python's sort stays stable with reverse=True, keeping the position order on ties
    ordered.sort(key=lambda c: _sort_value(c, options.sort), reverse=options.dir == "desc")
    return ordered


def rank(candidates: Sequence[ScoredCandidate], options: RankOptions) -> RankedPage:
    ranked = order(apply_filters(candidates, options), options)

    total = len(ranked)
    total_pages = max(1, math.ceil(total / options.per_page))
    page = min(options.page, total_pages)
    start = (page - 1) * options.per_page

    return RankedPage(
        items=ranked[start:start + options.per_page],
        total=total,
        total_pages=total_pages,
        page=page,
        best=ranked[0].profile if ranked else None,
    )
