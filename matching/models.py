"""
Company Matcher - Data Models

SQLAlchemy table for the stored catalog, plus the plain value types the
matching engine passes around.
"""

import math
from dataclasses import dataclass, field
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy import Integer, Text
from sqlalchemy.dialects.sqlite import JSON
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class CompanyRecord(Base):
    """
    Stored catalog row. ``position`` keeps the build order, which the engine
    uses as its record index.
    """

    __tablename__ = "company_profiles"

    position: Mapped[int] = mapped_column(Integer, primary_key=True)
    website: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    name: Mapped[Optional[str]] = mapped_column(Text, index=True)
    phones: Mapped[Optional[list]] = mapped_column(JSON, default=list)
    social: Mapped[Optional[dict]] = mapped_column(JSON, default=dict)
    address: Mapped[Optional[str]] = mapped_column(Text)

    def __repr__(self) -> str:
        return f"<CompanyRecord({self.position}, {self.website})>"


@dataclass(frozen=True)
class CompanyProfile:
    """A catalog entry. Immutable once loaded."""
    website: str
    name: Optional[str] = None
    phones: tuple[str, ...] = ()
    social: dict[str, tuple[str, ...]] = field(default_factory=dict)
    address: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "CompanyProfile":
        """Build a profile from a loosely-typed JSON/CSV row."""
        social = {}
        for network, urls in (data.get("social") or {}).items():
            if isinstance(urls, str):
                urls = [urls]
            cleaned = tuple(str(u).strip() for u in urls or [] if u and str(u).strip())
            if cleaned:
                social[network] = cleaned

        phones = data.get("phones") or []
        if isinstance(phones, str):
            phones = [phones]

        return cls(
            website=str(data.get("website") or "").strip(),
            name=_clean_optional(data.get("name")),
            phones=tuple(str(p).strip() for p in phones if p and str(p).strip()),
            social=social,
            address=_clean_optional(data.get("address")),
        )

    @property
    def facebook_urls(self) -> tuple[str, ...]:
        return self.social.get("facebook", ())

    def to_dict(self) -> dict:
        data = {
            "website": self.website,
            "phones": list(self.phones),
            "social": {network: list(urls) for network, urls in self.social.items()},
        }
        if self.name is not None:
            data["name"] = self.name
        if self.address is not None:
            data["address"] = self.address
        return data


def _clean_optional(value) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


class EmptyQueryError(ValueError):
    """Raised when a match query carries none of name, website, phone, facebook."""


@dataclass(frozen=True)
class MatchQuery:
    """Identifying fields of one match request. Any subset may be present."""
    name: Optional[str] = None
    website: Optional[str] = None
    phone: Optional[str] = None
    facebook: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not (self.name or self.website or self.phone or self.facebook)

    def text(self) -> str:
        """All present fields joined into one free-text query."""
        parts = [self.name, self.website, self.phone, self.facebook]
        return " ".join(p for p in parts if p)


SortKey = Literal["score", "name", "website"]
SortDir = Literal["asc", "desc"]


def _limited(max_length: int):
    return Field(default=None, max_length=max_length)


class MatchRequest(BaseModel):
    """
    Raw request parameters as they arrive from a form or JSON body.

    Strings are trimmed and length-limited; paging and score inputs accept
    numbers or numeric strings and fall back to defaults otherwise.
    """

    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    name: Optional[str] = _limited(256)
    website: Optional[str] = _limited(2048)
    phone: Optional[str] = _limited(64)
    facebook: Optional[str] = _limited(2048)

    page: Optional[Union[int, str]] = None
    per_page: Optional[Union[int, str]] = Field(default=None, alias="perPage")
    sort: SortKey = "score"
    dir: SortDir = "desc"
    min_score: Optional[Union[float, str]] = Field(default=None, alias="minScore")
    contains: Optional[str] = _limited(256)

    @field_validator("sort", "dir", mode="before")
    @classmethod
    def _blank_to_default(cls, value, info):
        if value is None or (isinstance(value, str) and not value.strip()):
            return "score" if info.field_name == "sort" else "desc"
        return value

    @field_validator("name", "website", "phone", "facebook", "contains", mode="after")
    @classmethod
    def _empty_to_none(cls, value: Optional[str]) -> Optional[str]:
        return value or None

    def to_query(self) -> MatchQuery:
        query = MatchQuery(
            name=self.name,
            website=self.website,
            phone=self.phone,
            facebook=self.facebook,
        )
        if query.is_empty:
            raise EmptyQueryError("Provide at least one of: name, website, phone, facebook")
        return query

    def page_number(self) -> int:
        return _as_int(self.page, 1)

    def page_size(self, default: int) -> int:
        return _as_int(self.per_page, default)

    def score_floor(self) -> float:
        try:
            floor = float(self.min_score)
        except (TypeError, ValueError):
            return 0.0
        return floor if math.isfinite(floor) else 0.0


def _as_int(value, default: int) -> int:
    try:
        number = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return default
    return number or default
