from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx
from pydantic import BaseModel

from autoleadgen.errors import AUTH, INPUT, NETWORK, AutoleadgenError
from schemas.leads import EnrichmentResult

APOLLO_BASE = "https://api.apollo.io/api/v1"
BULK_LIMIT = 10
logger = logging.getLogger(__name__)


class ApolloError(AutoleadgenError):
    category = NETWORK


class ApolloNotConfigured(ApolloError):
    category = AUTH

    def __init__(self):
        super().__init__("Apollo API key not configured", "Add an Apollo key to the key broker or APOLLO_API_KEY.")


class ApolloUnauthorized(ApolloError):
    category = AUTH

    def __init__(self):
        super().__init__("Invalid Apollo API key", "Check the Apollo API key.")


class InsufficientCredits(ApolloError):
    def __init__(self):
        super().__init__("Insufficient Apollo credits", "Top up Apollo credits or disable enrichment.")


class InvalidRequest(ApolloError):
    category = INPUT

    def __init__(self, message: str = "Invalid request parameters"):
        super().__init__(message)


class RateLimited(ApolloError):
    def __init__(self):
        super().__init__("Apollo rate limit exceeded. Please wait and try again.")


class ApolloServerError(ApolloError):
    def __init__(self, status: int, message: Optional[str] = None):
        super().__init__(message or f"Apollo server error: {status}")
        self.status = status


# Errors that end an enrichment pass instead of skipping one person.
HALTING_ERRORS = (RateLimited, InsufficientCredits)


class CreditsUsage(BaseModel):
    used: int = 0
    total: int = 0

    @property
    def remaining(self) -> int:
        return max(0, self.total - self.used)


def _raise_for_status(r: httpx.Response) -> None:
    code = r.status_code
    if code == 200:
        return
    if code == 401:
        raise ApolloUnauthorized()
    if code == 402:
        raise InsufficientCredits()
    if code == 422:
        raise InvalidRequest()
    if code == 429:
        raise RateLimited()
    message = None
    try:
        body = r.json()
        if isinstance(body, dict):
            message = body.get("message") or body.get("error")
    except ValueError:
        pass
    raise ApolloServerError(code, str(message) if message else None)


def _join_location(p: Dict[str, Any]) -> Optional[str]:
    parts = [str(p[k]) for k in ("city", "state", "country") if p.get(k)]
    return ", ".join(parts) if parts else None


def _first_phone(p: Dict[str, Any]) -> Optional[str]:
    phones = p.get("phone_numbers") or []
    if phones and isinstance(phones[0], dict):
        return phones[0].get("sanitized_number") or phones[0].get("raw_number")
    return None


def parse_person(p: Optional[Dict[str, Any]]) -> EnrichmentResult:
    if not isinstance(p, dict):
        return EnrichmentResult(found=False)
    personal = p.get("personal_emails") or []
    email = p.get("email") or (personal[0] if personal else None)
    org = p.get("organization") if isinstance(p.get("organization"), dict) else {}
    name = p.get("name") or " ".join(x for x in (p.get("first_name"), p.get("last_name")) if x) or None
    return EnrichmentResult(
        found=True,
        email=email,
        phone=_first_phone(p),
        company=p.get("organization_name") or org.get("name"),
        title=p.get("title"),
        location=_join_location(p),
        linkedin_url=p.get("linkedin_url"),
        name=name,
    )


def _person_detail(linkedin_url: str, first_name: Optional[str], last_name: Optional[str]) -> Dict[str, Any]:
    detail: Dict[str, Any] = {"linkedin_url": linkedin_url}
    if first_name:
        detail["first_name"] = first_name
    if last_name:
        detail["last_name"] = last_name
    return detail


class ApolloClient:
    def __init__(self, api_key: Optional[str], *, base_url: str = APOLLO_BASE, timeout_s: float = 30.0):
        self.api_key = (api_key or "").strip()
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s

    def _headers(self) -> Dict[str, str]:
        if not self.api_key:
            raise ApolloNotConfigured()
        return {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "x-api-key": self.api_key,
        }

    async def _send(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        headers = self._headers()
        try:
            async with httpx.AsyncClient(timeout=self.timeout_s) as client:
                if method == "GET":
                    r = await client.get(f"{self.base_url}{path}", headers=headers)
                else:
                    r = await client.post(f"{self.base_url}{path}", json=payload, headers=headers)
        except httpx.HTTPError as e:
            logger.warning("apollo %s failed: %s", path, e)
            raise ApolloError(f"Network error: {e}") from e
        _raise_for_status(r)
        try:
            data = r.json()
        except ValueError as e:
            raise ApolloError("Invalid response from Apollo") from e
        if not isinstance(data, dict):
            raise ApolloError("Invalid response from Apollo")
        return data

    async def enrich_person(self, linkedin_url: str, first_name: Optional[str] = None,
                            last_name: Optional[str] = None) -> EnrichmentResult:
        """Match one person by LinkedIn URL (and name when known)."""
        payload = _person_detail(linkedin_url, first_name, last_name)
        payload.update({"reveal_personal_emails": True, "reveal_phone_number": True})
        data = await self._send("POST", "/people/match", payload)
        res = parse_person(data.get("person"))
        logger.info("apollo match url=%s found=%s email=%s phone=%s",
                    linkedin_url, res.found, bool(res.email), bool(res.phone))
        return res

    async def bulk_enrich(self, people: Sequence[Dict[str, Optional[str]]]) -> Dict[str, EnrichmentResult]:
        """Match up to ten people at once; results are keyed by LinkedIn URL.

        Each item needs ``linkedin_url`` and may carry ``first_name`` / ``last_name``.
        """
        if not people:
            return {}
        if len(people) > BULK_LIMIT:
            raise InvalidRequest(f"Maximum {BULK_LIMIT} records per bulk request")
        details = [_person_detail(str(p["linkedin_url"]), p.get("first_name"), p.get("last_name")) for p in people]
        data = await self._send("POST", "/people/bulk_match", {
            "details": details,
            "reveal_personal_emails": True,
            "reveal_phone_number": True,
        })
        out: Dict[str, EnrichmentResult] = {}
        for match in data.get("matches") or []:
            if not isinstance(match, dict) or not match.get("linkedin_url"):
                continue
            res = parse_person(match)
            res.found = bool(res.email or res.phone)
            out[match["linkedin_url"]] = res
        return out

    async def credits(self) -> CreditsUsage:
        data = await self._send("GET", "/auth/health")
        used = int(data.get("current_credits_used") or 0)
        total = int(data.get("credits_limit") or 0)
        if not total and isinstance(data.get("plan"), dict):
            total = int(data["plan"].get("credits") or 0)
        return CreditsUsage(used=used, total=total)


def backfill(lead, result: EnrichmentResult) -> List[str]:
    """Copy enrichment fields onto a lead only where the lead has none.

    Returns the names of the fields that were filled.
    """
    filled: List[str] = []
    for field in ("email", "phone", "company", "location"):
        value = getattr(result, field)
        if value and not getattr(lead, field):
            setattr(lead, field, value)
            filled.append(field)
    return filled
