"""
Canonical forms for company identifiers.

Every function here is total: malformed input degrades to a lightly cleaned
copy instead of raising, so the same function can produce both index keys at
build time and lookup keys at query time.
"""

import re
from typing import Optional
from urllib.parse import SplitResult, urlsplit

# Legal-entity suffixes and connectives dropped from name/domain tokens
STOP_WORDS = frozenset({
    "inc", "incorporated", "co", "llc", "ltd", "limited", "pty", "plc",
    "corp", "corporation", "company", "companies", "gmbh", "srl", "sa",
    "bv", "nv", "llp", "pc", "lp", "pllc", "pte", "ag", "usa", "us",
    "the", "and", "&",
})

COMMON_TLDS = frozenset({
    "com", "org", "net", "io", "co", "us", "uk", "ca", "de", "fr", "au",
    "nz", "in", "info", "biz", "edu", "gov", "me",
})

FACEBOOK_HOST = "facebook.com"

# Scheme typos seen in crawled data, applied in order
_SCHEME_REPAIRS = [
    (re.compile(r"^https?://https?://", re.IGNORECASE), "https://"),
    (re.compile(r"://https//", re.IGNORECASE), "://"),
    (re.compile(r"://http//", re.IGNORECASE), "://"),
    (re.compile(r"^https//", re.IGNORECASE), "https://"),
    (re.compile(r"^http//", re.IGNORECASE), "http://"),
]

_FALLBACK_PREFIXES = [
    re.compile(r"^https?://"),
    re.compile(r"^(?:www\.)+"),
    re.compile(r"^https//"),
    re.compile(r"^http//"),
]

_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_NON_DIGIT = re.compile(r"[^0-9]")
_HANDLE_SEPARATORS = re.compile(r"[._-]+")
_INVALID_HOST_CHARS = re.compile(r"[\s<>\"{}|\\^`]")


def repair_scheme(raw: str) -> str:
    """Fix ``https//host`` and ``https://https//host`` style typos."""
    fixed = (raw or "").strip()
    for pattern, replacement in _SCHEME_REPAIRS:
        fixed = pattern.sub(replacement, fixed)
    return fixed


def parse_url(raw: str) -> Optional[SplitResult]:
    """
    Parse a possibly scheme-less, possibly malformed URL.

    Returns None when no usable hostname can be recovered.
    """
    fixed = repair_scheme(raw)
    if not fixed:
        return None
    if "://" not in fixed:
        fixed = f"https://{fixed}"
    try:
        parts = urlsplit(fixed)
        host = parts.hostname
    except ValueError:
        return None
    if not host or _INVALID_HOST_CHARS.search(host):
        return None
    return parts


def _strip_www(host: str) -> str:
    while host.startswith("www."):
        host = host[4:]
    return host


def _fallback_clean(raw: str) -> str:
    cleaned = (raw or "").strip().lower()
    for pattern in _FALLBACK_PREFIXES:
        cleaned = pattern.sub("", cleaned)
    return cleaned[:-1] if cleaned.endswith("/") else cleaned


def canonical_website(raw: str) -> str:
    """
    Canonical site key: lower-cased host without ``www.``, plus the path
    without a trailing slash when the path is not the root.

    >>> canonical_website("https://https//acornlawpc.com/")
    'acornlawpc.com'
    """
    parts = parse_url(raw)
    if parts is None:
        return _fallback_clean(raw)

    host = _strip_www(parts.hostname)
    path = parts.path or "/"
    if path == "/":
        return host
    if path.endswith("/"):
        path = path[:-1]
    return f"{host}{path}"


def extract_host(raw: str) -> str:
    """Lower-cased host without ``www.``."""
    parts = parse_url(raw)
    if parts is None:
        return _fallback_clean(raw).split("/")[0]
    return _strip_www(parts.hostname)


def _facebook_host(host: str) -> str:
    if host.startswith("m."):
        host = host[2:]
    host = _strip_www(host)
    return FACEBOOK_HOST if host == "fb.com" else host


def canonical_facebook(raw: str) -> str:
    """
    Canonical page key ``facebook.com/<handle>``, keeping only the first path
    segment. Non-facebook URLs get the generic website form.
    """
    parts = parse_url(raw)
    if parts is None:
        cleaned = _fallback_clean(raw)
        if cleaned.startswith("m."):
            cleaned = cleaned[2:]
        if cleaned.startswith("fb.com"):
            cleaned = FACEBOOK_HOST + cleaned[len("fb.com"):]
        return cleaned

    if _facebook_host(parts.hostname) != FACEBOOK_HOST:
        return canonical_website(raw)
    return f"{FACEBOOK_HOST}/{facebook_handle(parts)}"


def facebook_handle(parts: SplitResult) -> str:
    segments = [s for s in parts.path.split("/") if s]
    return segments[0] if segments else ""


def handle_tokens(raw: str, min_length: int = 3) -> list[str]:
    """
    Brand-like pieces of a social URL's first path segment, e.g.
    ``facebook.com/total.seal-rings`` -> ``["total", "seal", "rings"]``.
    """
    parts = parse_url(raw)
    if parts is None:
        return []
    handle = facebook_handle(parts)
    return [t for t in _HANDLE_SEPARATORS.split(handle) if len(t) >= min_length]


def phone_key(raw: str) -> str:
    """Last ten digits. Shorter numbers give a short key that never collides."""
    return _NON_DIGIT.sub("", raw or "")[-10:]


def normalize_name(raw: str) -> str:
    return (raw or "").lower().strip()


def _tokens(text: str) -> list[str]:
    words = _NON_ALNUM.sub(" ", text.lower()).split()
    return [w for w in words if len(w) > 1 and w not in STOP_WORDS]


def name_tokens(raw: str) -> frozenset[str]:
    return frozenset(_tokens(raw or ""))


def domain_token_list(host: str) -> list[str]:
    labels = (host or "").lower().split(".")
    if len(labels) > 1 and labels[-1] in COMMON_TLDS:
        labels.pop()
    return list(dict.fromkeys(_tokens(".".join(labels))))


def domain_tokens(host: str) -> frozenset[str]:
    """Brand tokens of a host with a common TLD removed."""
    return frozenset(domain_token_list(host))
