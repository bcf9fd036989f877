from typing import Iterable, List

from schemas.engagement import ICPFilter, PostEngager


def _keywords(values: Iterable[str]) -> List[str]:
    return [v.strip().lower() for v in values if v and v.strip()]


def parse_keywords(text: str) -> List[str]:
    """Comma-separated keyword input -> trimmed, non-empty keywords."""
    return [k.strip() for k in (text or "").split(",") if k.strip()]


def matches_icp(engager: PostEngager, icp: ICPFilter) -> bool:
    """Headline keyword predicate. Exclude keywords always win over include keywords."""
    headline = (engager.headline or "").lower()
    if any(k in headline for k in _keywords(icp.exclude_keywords)):
        return False
    include = _keywords(icp.include_keywords)
    if include and not any(k in headline for k in include):
        return False
    if icp.min_connection_degree:
        degree = engager.degree
        # unknown degree is not held against the engager
        if degree is not None and degree < icp.min_connection_degree:
            return False
    return True


def apply_icp(engagers: List[PostEngager], icp: ICPFilter) -> List[PostEngager]:
    """Stamp ``matches_icp`` on every engager and return those that qualify.

    A disabled filter clears the stamp and lets everyone through.
    """
    if not icp.is_enabled:
        for e in engagers:
            e.matches_icp = None
        return list(engagers)
    for e in engagers:
        e.matches_icp = matches_icp(e, icp)
    return [e for e in engagers if e.matches_icp]
