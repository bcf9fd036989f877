from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from autoleadgen.config import BrokerConfig
from autoleadgen.errors import AUTH, NETWORK, AutoleadgenError
from schemas.ai import AIModel, ProviderKeys

logger = logging.getLogger(__name__)


class BrokerError(AutoleadgenError):
    category = NETWORK
    recovery = "Check the key broker URL and that the service is running."


class BrokerNotConfigured(BrokerError):
    def __init__(self):
        super().__init__("Key broker URL or secret is not configured",
                         "Set KEY_BROKER_URL and KEY_BROKER_SECRET.")


class BrokerUnauthorized(BrokerError):
    category = AUTH
    recovery = "Check the key broker secret."

    def __init__(self):
        super().__init__("Unauthorized - check your API secret")


class BrokerServerError(BrokerError):
    def __init__(self, status: int, message: Optional[str] = None):
        super().__init__(message or f"Server error ({status})")
        self.status = status


class KeyBrokerClient:
    """HTTP client for the remote key/model broker.

    Keys are fetched once and cached on the instance; ``refresh=True`` forces a
    new fetch. Implements ``get_api_key(provider)`` for the AI router.
    """

    def __init__(self, config: BrokerConfig):
        self.config = config
        self._keys: Optional[ProviderKeys] = None

    def _url(self, path: str) -> str:
        if not self.config.is_configured:
            raise BrokerNotConfigured()
        return f"{self.config.base_url.rstrip('/')}{path}"

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.config.secret}",
            "X-Device-ID": self.config.device_id,
            "Content-Type": "application/json",
        }

    @staticmethod
    def _check(r: httpx.Response) -> None:
        if r.status_code == 200:
            return
        if r.status_code == 401:
            raise BrokerUnauthorized()
        detail = None
        try:
            body = r.json()
            if isinstance(body, dict):
                detail = body.get("error") or body.get("message")
        except ValueError:
            pass
        raise BrokerServerError(r.status_code, f"Server error ({r.status_code}): {detail}" if detail else None)

    async def _request(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        url = self._url(path)
        try:
            async with httpx.AsyncClient(timeout=self.config.timeout_s) as client:
                r = await client.request(method, url, headers=self._headers(), json=payload)
        except httpx.HTTPError as e:
            logger.warning("key broker %s %s failed: %s", method, path, e)
            raise BrokerError(f"Network error: {e}") from e
        self._check(r)
        try:
            return r.json() if r.content else {}
        except ValueError as e:
            raise BrokerError("Invalid response from key broker") from e

    async def list_models(self) -> List[AIModel]:
        data = await self._request("GET", "/api/models")
        items = data.get("models") if isinstance(data, dict) else data
        models: List[AIModel] = []
        for it in items or []:
            if isinstance(it, dict) and it.get("id"):
                models.append(AIModel(id=str(it["id"]), name=str(it.get("name") or it["id"]),
                                      provider=str(it.get("provider") or "")))
        logger.info("key broker: %d models available", len(models))
        return models

    async def fetch_keys(self, refresh: bool = False) -> ProviderKeys:
        if self._keys is not None and not refresh:
            return self._keys
        data = await self._request("GET", "/api/ai-keys")
        keys = data.get("keys", data) if isinstance(data, dict) else {}
        self._keys = ProviderKeys(**{k: v for k, v in keys.items() if k in ProviderKeys.model_fields and isinstance(v, str)})
        return self._keys

    async def get_api_key(self, provider: str) -> Optional[str]:
        keys = await self.fetch_keys()
        return keys.get(provider)

    async def store_keys(self, keys: ProviderKeys) -> None:
        payload = {k: v for k, v in keys.model_dump().items() if v}
        await self._request("POST", "/api/keys", payload)
        self._keys = None

    async def delete_keys(self) -> None:
        await self._request("DELETE", "/api/keys")
        self._keys = None

    async def check_health(self) -> bool:
        try:
            await self._request("GET", "/api/health")
        except BrokerError as e:
            logger.info("key broker health check failed: %s", e)
            return False
        return True
