"""
Text search over catalog records.

Two structures live here:

- ``TextIndex``: token inverted index over name, website and address with
  prefix and edit-distance term expansion. Used to discover candidates.
- ``FuzzyIndex``: whole-string fuzzy search over a record's identifying
  values (website, name, phones, facebook URLs) with a distance threshold.
  The strict and loose fallback tiers are two instances with different
  thresholds.

Neither structure is trusted for final ranking; hits are rescored by the
scorer except in the fuzzy fallback tiers.
"""

import re
from bisect import bisect_left
from collections import Counter, defaultdict
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from rapidfuzz import fuzz, process, utils
from rapidfuzz.distance import Levenshtein

from matching.engine.features import AugmentedRecord

TEXT_FIELDS = ("name", "website", "address")

_TERM_SPLIT = re.compile(r"[\W_]+")


def tokenize(text: Optional[str]) -> list[str]:
    """Lower-cased terms split on whitespace and punctuation."""
    if not text:
        return []
    return [t for t in _TERM_SPLIT.split(text.lower()) if t]


class TextIndex:
    """
    Inverted index with prefix and fuzzy term matching.

    A query matches a record when any query term matches any indexed term of
    the record, where a term matches by:
    - prefix: the indexed term starts with the query term
    - fuzzy: Levenshtein distance <= round(fuzziness * len(term)),
      capped at ``max_edits``
    """

    def __init__(
        self,
        records: Sequence[AugmentedRecord],
        fields: Sequence[str] = TEXT_FIELDS,
        fuzziness: float = 0.2,
        max_edits: int = 6,
        prefix: bool = True,
    ):
        self.fields = tuple(fields)
        self.fuzziness = fuzziness
        self.max_edits = max_edits
        self.prefix = prefix

        postings = defaultdict(set)
        for record in records:
            for field_name in self.fields:
                for term in tokenize(getattr(record.profile, field_name, None)):
                    postings[term].add(record.position)

        self._postings = {term: frozenset(ids) for term, ids in postings.items()}
        self._vocabulary = sorted(self._postings)

    def __len__(self) -> int:
        return len(self._vocabulary)

    def max_distance(self, term: str) -> int:
        return min(self.max_edits, int(len(term) * self.fuzziness + 0.5))

    def expand(self, term: str) -> set[str]:
        """Indexed terms matching one query term."""
        matched = set()
        if term in self._postings:
            matched.add(term)

        if self.prefix:
            i = bisect_left(self._vocabulary, term)
            while i < len(self._vocabulary) and self._vocabulary[i].startswith(term):
                matched.add(self._vocabulary[i])
                i += 1

        max_distance = self.max_distance(term)
        if max_distance > 0:
            for choice, _distance, _ in process.extract(
                term,
                self._vocabulary,
                scorer=Levenshtein.distance,
                score_cutoff=max_distance,
                limit=None,
            ):
                matched.add(choice)

        return matched

    def search(self, query: Optional[str]) -> list[int]:
        """
        Positions of records matching any term of the query. Records matching
        more distinct query terms come first, then ascending position.
        """
        hits = Counter()
        for term in dict.fromkeys(tokenize(query)):
            matched = set()
            for indexed in self.expand(term):
                matched |= self._postings[indexed]
            hits.update(matched)
        return sorted(hits, key=lambda position: (-hits[position], position))


@dataclass(frozen=True)
class FuzzyHit:
    """A fuzzy match; distance runs from 0 (identical) to 1 (unrelated)."""
    position: int
    distance: float


def record_document(record: AugmentedRecord) -> list[str]:
    profile = record.profile
    values = [profile.website, profile.name or ""]
    values.extend(profile.phones)
    values.extend(profile.facebook_urls)
    return [v for v in values if v]


class FuzzyIndex:
    """
    Approximate whole-string search over per-record value lists.

    Each record is represented by several strings; a record's distance is the
    best distance of any of its strings. Hits above ``threshold`` are dropped.
    """

    def __init__(self, documents: Iterable[tuple[int, Sequence[str]]], threshold: float):
        self.threshold = threshold
        self._choices = []
        self._owners = []
        for position, values in documents:
            for value in values:
                if not value:
                    continue
                self._choices.append(value)
                self._owners.append(position)

    @classmethod
    def from_records(cls, records: Sequence[AugmentedRecord], threshold: float) -> "FuzzyIndex":
        return cls(((r.position, record_document(r)) for r in records), threshold)

    def search(self, query: str, limit: int = 10) -> list[FuzzyHit]:
        """Best hits ordered by distance, then position."""
        if not query or not self._choices:
            return []

        best = {}
        for _choice, similarity, i in process.extract(
            query,
            self._choices,
            scorer=fuzz.WRatio,
            processor=utils.default_process,
            score_cutoff=(1.0 - self.threshold) * 100.0,
            limit=None,
        ):
            distance = 1.0 - similarity / 100.0
            owner = self._owners[i]
            if owner not in best or distance < best[owner]:
                best[owner] = distance

        hits = sorted(best.items(), key=lambda item: (item[1], item[0]))
        return [FuzzyHit(position, distance) for position, distance in hits[:limit]]
