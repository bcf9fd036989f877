import pytest

from autoleadgen.vendors import apollo
from schemas.leads import EnrichmentResult, Lead


class FakeResp:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload

    def json(self):
        return self._payload


def _install(monkeypatch, resp, calls):
    class FakeClient:
        def __init__(self, *args, **kwargs):
            pass

        async def __aenter__(self):
            return self

        async def __aexit__(self, exc_type, exc, tb):
            return False

        async def post(self, url, json=None, headers=None):
            calls.append(("POST", url, json, headers))
            return resp

        async def get(self, url, headers=None):
            calls.append(("GET", url, None, headers))
            return resp

    monkeypatch.setattr(apollo.httpx, "AsyncClient", FakeClient)


PERSON = {
    "first_name": "Jane",
    "last_name": "Doe",
    "email": None,
    "personal_emails": ["jane@home.example"],
    "phone_numbers": [{"sanitized_number": "+6512345678", "raw_number": "1234 5678"}],
    "organization": {"name": "Acme"},
    "title": "CTO",
    "city": "Singapore",
    "country": "Singapore",
    "linkedin_url": "http://www.linkedin.com/in/jane",
}


@pytest.mark.asyncio
async def test_enrich_person_parses_match(monkeypatch):
    calls = []
    _install(monkeypatch, FakeResp(200, {"person": PERSON}), calls)
    res = await apollo.ApolloClient("key-1").enrich_person("https://linkedin.com/in/jane", "Jane", None)
    assert res.found
    assert res.email == "jane@home.example"
    assert res.phone == "+6512345678"
    assert res.company == "Acme"
    assert res.location == "Singapore, Singapore"
    assert res.name == "Jane Doe"
    method, url, payload, headers = calls[0]
    assert url.endswith("/people/match")
    assert payload["linkedin_url"] == "https://linkedin.com/in/jane"
    assert payload["first_name"] == "Jane" and "last_name" not in payload
    assert payload["reveal_personal_emails"] is True
    assert headers["x-api-key"] == "key-1"


@pytest.mark.asyncio
async def test_no_match_is_not_found(monkeypatch):
    _install(monkeypatch, FakeResp(200, {"person": None}), [])
    res = await apollo.ApolloClient("k").enrich_person("https://linkedin.com/in/nobody")
    assert res.found is False


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status,exc",
    [
        (401, apollo.ApolloUnauthorized),
        (402, apollo.InsufficientCredits),
        (422, apollo.InvalidRequest),
        (429, apollo.RateLimited),
        (500, apollo.ApolloServerError),
    ],
)
async def test_status_mapping(monkeypatch, status, exc):
    _install(monkeypatch, FakeResp(status, {"message": "boom"}), [])
    with pytest.raises(exc):
        await apollo.ApolloClient("k").enrich_person("https://linkedin.com/in/x")


@pytest.mark.asyncio
async def test_missing_key_fails_before_any_request(monkeypatch):
    calls = []
    _install(monkeypatch, FakeResp(200, {}), calls)
    with pytest.raises(apollo.ApolloNotConfigured):
        await apollo.ApolloClient("  ").enrich_person("https://linkedin.com/in/x")
    assert calls == []


@pytest.mark.asyncio
async def test_bulk_limit_and_found_rule(monkeypatch):
    calls = []
    _install(monkeypatch, FakeResp(200, {"matches": [
        {"linkedin_url": "http://www.linkedin.com/in/a", "email": "a@x.com"},
        {"linkedin_url": "http://www.linkedin.com/in/b", "title": "CEO"},
        None,
    ]}), calls)
    client = apollo.ApolloClient("k")
    with pytest.raises(apollo.InvalidRequest):
        await client.bulk_enrich([{"linkedin_url": f"u{i}"} for i in range(11)])
    out = await client.bulk_enrich([{"linkedin_url": "a"}, {"linkedin_url": "b"}])
    assert out["http://www.linkedin.com/in/a"].found is True
    assert out["http://www.linkedin.com/in/b"].found is False
    assert calls[-1][1].endswith("/people/bulk_match")


@pytest.mark.asyncio
async def test_credits(monkeypatch):
    _install(monkeypatch, FakeResp(200, {"current_credits_used": 40, "credits_limit": 100}), [])
    usage = await apollo.ApolloClient("k").credits()
    assert (usage.used, usage.total, usage.remaining) == (40, 100, 60)


def test_backfill_only_fills_empty_fields():
    lead = Lead(profile_url="linkedin.com/in/a", email="keep@x.com", company=None)
    filled = apollo.backfill(lead, EnrichmentResult(found=True, email="new@x.com", phone="123", company="Acme"))
    assert lead.email == "keep@x.com"
    assert lead.phone == "123" and lead.company == "Acme"
    assert filled == ["phone", "company"]
