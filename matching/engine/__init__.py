"""
Company Matching Engine

Resolves a noisy, partial company description to a catalog profile using:
- Canonical identifiers (website, phone, facebook page)
- Exact-key lookup indexes and a fuzzy text index
- An additive confidence score
- A fallback cascade that always returns a best-effort answer
"""

from matching.engine.candidates import CandidateGenerator, ScoredCandidate, Tier
from matching.engine.ranking import RankOptions
from matching.engine.resolver import (
    CatalogSnapshot,
    CompanyResolver,
    MatchResponse,
    ResolverConfig,
)

__all__ = [
    "CandidateGenerator",
    "CatalogSnapshot",
    "CompanyResolver",
    "MatchResponse",
    "RankOptions",
    "ResolverConfig",
    "ScoredCandidate",
    "Tier",
]
