from __future__ import annotations

from typing import Optional
from urllib.parse import quote_plus, urlparse

GOOGLE_SEARCH = "https://www.google.com/search"
RESULTS_PER_PAGE = 10


def normalize_profile_url(url: Optional[str]) -> str:
    """Canonical comparable form of a profile URL.

    Lower-cased, with scheme, leading ``www.`` and surrounding slashes removed.
    Idempotent: ``normalize_profile_url(normalize_profile_url(u)) == normalize_profile_url(u)``.
    """
    s = (url or "").strip().lower()
    while True:
        before = s
        for prefix in ("https://", "http://", "www."):
            if s.startswith(prefix):
                s = s[len(prefix):]
        s = s.strip().strip("/")
        if s == before:
            return s


def is_valid_profile_url(url: Optional[str]) -> bool:
    s = (url or "").strip()
    if not s:
        return False
    if "://" not in s:
        s = "https://" + s
    try:
        parsed = urlparse(s)
    except ValueError:
        return False
    return bool(parsed.netloc) and "." in parsed.netloc and " " not in s


def display_name_from_url(url: Optional[str]) -> str:
    """Last non-empty path segment, used when a person has no name on record."""
    path = urlparse((url or "").strip()).path
    parts = [p for p in path.split("/") if p]
    return parts[-1] if parts else (url or "")


def build_search_url(role: str, location: str, page: int = 0) -> str:
    """Google query restricted to LinkedIn profile pages; ``page`` is zero-based."""
    terms = " ".join(t for t in ((role or "").strip(), (location or "").strip()) if t)
    q = f"{terms} site:linkedin.com/in".strip()
    url = f"{GOOGLE_SEARCH}?q={quote_plus(q)}"
    if page > 0:
        url += f"&start={page * RESULTS_PER_PAGE}"
    return url
