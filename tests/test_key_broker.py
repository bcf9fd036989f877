import pytest

from autoleadgen import key_broker as kb
from autoleadgen.config import BrokerConfig
from schemas.ai import ProviderKeys


class FakeResp:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload
        self.content = b"x" if payload is not None else b""

    def json(self):
        return self._payload


def _install(monkeypatch, routes, calls):
    class FakeClient:
        def __init__(self, *args, **kwargs):
            pass

        async def __aenter__(self):
            return self

        async def __aexit__(self, exc_type, exc, tb):
            return False

        async def request(self, method, url, headers=None, json=None):
            calls.append((method, url, headers, json))
            resp = routes[(method, url.split("example.com", 1)[1])]
            if isinstance(resp, Exception):
                raise resp
            return resp

    monkeypatch.setattr(kb.httpx, "AsyncClient", FakeClient)


CFG = BrokerConfig(base_url="https://keys.example.com/", secret="s3cret", device_id="dev-1")


@pytest.mark.asyncio
async def test_list_models_and_headers(monkeypatch):
    calls = []
    _install(monkeypatch, {("GET", "/api/models"): FakeResp(200, {"models": [
        {"id": "gpt-4o", "name": "GPT-4o", "provider": "openai"},
        {"id": "claude-3-haiku"},
        {"name": "missing id"},
    ]})}, calls)
    models = await kb.KeyBrokerClient(CFG).list_models()
    assert [m.id for m in models] == ["gpt-4o", "claude-3-haiku"]
    assert models[1].name == "claude-3-haiku"
    method, url, headers, _ = calls[0]
    assert url == "https://keys.example.com/api/models"
    assert headers["Authorization"] == "Bearer s3cret"
    assert headers["X-Device-ID"] == "dev-1"


@pytest.mark.asyncio
async def test_keys_are_cached_until_refresh(monkeypatch):
    calls = []
    _install(monkeypatch, {("GET", "/api/ai-keys"): FakeResp(200, {"openai": "sk-1", "anthropic": "", "other": "x"})}, calls)
    client = kb.KeyBrokerClient(CFG)
    assert await client.get_api_key("openai") == "sk-1"
    assert await client.get_api_key("anthropic") is None
    assert len(calls) == 1
    await client.fetch_keys(refresh=True)
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_store_and_delete_keys(monkeypatch):
    calls = []
    _install(monkeypatch, {
        ("POST", "/api/keys"): FakeResp(200, None),
        ("DELETE", "/api/keys"): FakeResp(200, None),
    }, calls)
    client = kb.KeyBrokerClient(CFG)
    await client.store_keys(ProviderKeys(openai="sk-1", xai="xk"))
    await client.delete_keys()
    assert calls[0][0] == "POST" and calls[0][3] == {"openai": "sk-1", "xai": "xk"}
    assert calls[1][0] == "DELETE"


@pytest.mark.asyncio
async def test_status_mapping(monkeypatch):
    _install(monkeypatch, {
        ("GET", "/api/models"): FakeResp(401, {"error": "nope"}),
        ("GET", "/api/ai-keys"): FakeResp(503, {"error": "maintenance"}),
        ("GET", "/api/health"): kb.httpx.ConnectError("down"),
    }, [])
    client = kb.KeyBrokerClient(CFG)
    with pytest.raises(kb.BrokerUnauthorized) as ei:
        await client.list_models()
    assert ei.value.message == "Unauthorized - check your API secret"
    with pytest.raises(kb.BrokerServerError) as ei:
        await client.fetch_keys()
    assert ei.value.status == 503
    assert "maintenance" in ei.value.message
    assert await client.check_health() is False


@pytest.mark.asyncio
async def test_unconfigured_broker():
    client = kb.KeyBrokerClient(BrokerConfig(base_url=None, secret=None))
    with pytest.raises(kb.BrokerNotConfigured):
        await client.list_models()
