"""Route generation requests to the AI provider a model id belongs to.

Provider classification and request shaping are table driven: adding a
provider or model family means adding a row, not editing branches.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Sequence, Tuple

import httpx

from autoleadgen.errors import AUTH, NETWORK, AutoleadgenError
from autoleadgen.prompts import outreach_prompt
from schemas.ai import ModelTestResult
from schemas.leads import ProfileData

logger = logging.getLogger(__name__)


class AIError(AutoleadgenError):
    category = NETWORK


class NoApiKey(AIError):
    category = AUTH
    recovery = "Add an API key for this provider to the key broker."

    def __init__(self, provider: str):
        super().__init__(f"No API key configured for {provider}")
        self.provider = provider


class ModelNotConfigured(AIError):
    recovery = "Choose an AI model before enabling generation."

    def __init__(self):
        super().__init__("No AI model configured")


class UnsupportedProvider(AIError):
    def __init__(self, provider: str):
        super().__init__(f"Provider '{provider}' is not supported here")
        self.provider = provider


class ApiError(AIError):
    def __init__(self, detail: str):
        super().__init__(f"API Error: {detail}")
        self.detail = detail


class InvalidResponse(ApiError):
    def __init__(self, detail: str = "Invalid response from AI provider"):
        super().__init__(detail)


# -- classification ----------------------------------------------------------

@dataclass(frozen=True)
class ProviderRule:
    provider: str
    contains: Tuple[str, ...] = ()
    prefixes: Tuple[str, ...] = ()

    def matches(self, model_id: str) -> bool:
        return any(k in model_id for k in self.contains) or any(model_id.startswith(p) for p in self.prefixes)


# First matching row wins.
PROVIDER_RULES: Tuple[ProviderRule, ...] = (
    ProviderRule("apple", contains=("apple", "foundation")),
    ProviderRule("openai", contains=("gpt",), prefixes=("o1", "o3", "o4")),
    ProviderRule("anthropic", contains=("claude",)),
    ProviderRule("xai", contains=("grok",)),
)
DEFAULT_PROVIDER = "openai"


def classify_provider(model_id: Optional[str], rules: Sequence[ProviderRule] = PROVIDER_RULES) -> str:
    mid = (model_id or "").strip().lower()
    for rule in rules:
        if rule.matches(mid):
            return rule.provider
    return DEFAULT_PROVIDER


# -- request shaping ---------------------------------------------------------

@dataclass(frozen=True)
class ModelRule:
    name: str
    token_field: str = "max_tokens"
    allows_temperature: bool = True
    # reasoning models spend hidden tokens before answering
    min_tokens: int = 0
    prefixes: Tuple[str, ...] = ()
    contains: Tuple[str, ...] = ()
    excludes: Tuple[str, ...] = ()

    def matches(self, model_id: str) -> bool:
        if any(x in model_id for x in self.excludes):
            return False
        return any(model_id.startswith(p) for p in self.prefixes) or any(k in model_id for k in self.contains)


MODEL_RULES: Tuple[ModelRule, ...] = (
    ModelRule("reasoning", token_field="max_completion_tokens", allows_temperature=False,
              min_tokens=2000, prefixes=("o1", "o3", "o4")),
    ModelRule("gpt-5", token_field="max_completion_tokens", allows_temperature=False,
              min_tokens=2000, contains=("gpt-5",), excludes=("chat",)),
)
DEFAULT_MODEL_RULE = ModelRule("default")


def model_rule(model_id: str) -> ModelRule:
    mid = (model_id or "").strip().lower()
    for rule in MODEL_RULES:
        if rule.matches(mid):
            return rule
    return DEFAULT_MODEL_RULE


@dataclass(frozen=True)
class ProviderSpec:
    url: str
    style: str  # "openai" (choices[0].message.content) or "anthropic" (content[0].text)


PROVIDERS: Dict[str, ProviderSpec] = {
    "openai": ProviderSpec("https://api.openai.com/v1/chat/completions", "openai"),
    "anthropic": ProviderSpec("https://api.anthropic.com/v1/messages", "anthropic"),
    "xai": ProviderSpec("https://api.x.ai/v1/chat/completions", "openai"),
}
ANTHROPIC_VERSION = "2023-06-01"


def build_request(model_id: str, prompt: str, api_key: str,
                  max_tokens: int = 300, temperature: float = 0.7) -> Tuple[str, Dict[str, str], Dict[str, Any]]:
    """URL, headers and JSON body for one single-message generation call."""
    provider = classify_provider(model_id)
    spec = PROVIDERS.get(provider)
    if spec is None:
        raise UnsupportedProvider(provider)
    rule = model_rule(model_id)
    body: Dict[str, Any] = {
        "model": model_id,
        "messages": [{"role": "user", "content": prompt}],
        rule.token_field: max(max_tokens, rule.min_tokens),
    }
    if rule.allows_temperature:
        body["temperature"] = temperature
    if spec.style == "anthropic":
        headers = {"x-api-key": api_key, "anthropic-version": ANTHROPIC_VERSION}
    else:
        headers = {"Authorization": f"Bearer {api_key}"}
    headers["Content-Type"] = "application/json"
    return spec.url, headers, body


def extract_text(style: str, data: Any) -> str:
    try:
        if style == "anthropic":
            text = data["content"][0]["text"]
        else:
            text = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        raise InvalidResponse() from None
    if not isinstance(text, str):
        raise InvalidResponse()
    return text.strip()


def _error_detail(r: httpx.Response) -> str:
    try:
        body = r.json()
        msg = (body.get("error") or {}).get("message") if isinstance(body, dict) else None
        if msg:
            return str(msg)
    except (ValueError, AttributeError):
        pass
    return f"HTTP {r.status_code}"


# -- router ------------------------------------------------------------------

class KeyLookup(Protocol):
    async def get_api_key(self, provider: str) -> Optional[str]: ...


class AIProviderRouter:
    def __init__(self, keys: KeyLookup, timeout_s: float = 60.0,
                 max_tokens: int = 300, temperature: float = 0.7):
        self.keys = keys
        self.timeout_s = timeout_s
        self.max_tokens = max_tokens
        self.temperature = temperature

    async def _api_key(self, provider: str) -> str:
        key = await self.keys.get_api_key(provider)
        if not key or not key.strip():
            raise NoApiKey(provider)
        return key.strip()

    async def complete(self, model_id: Optional[str], prompt: str, max_tokens: Optional[int] = None,
                       temperature: Optional[float] = None) -> str:
        """Send ``prompt`` to whichever provider serves ``model_id``.

        ``max_tokens`` and ``temperature`` override the router defaults for this call.
        """
        if not model_id or not model_id.strip():
            raise ModelNotConfigured()
        model_id = model_id.strip()
        provider = classify_provider(model_id)
        if provider not in PROVIDERS:
            raise UnsupportedProvider(provider)
        api_key = await self._api_key(provider)
        url, headers, body = build_request(
            model_id, prompt, api_key,
            self.max_tokens if max_tokens is None else max_tokens,
            self.temperature if temperature is None else temperature,
        )
        logger.info("ai: model=%s provider=%s field=%s", model_id, provider, model_rule(model_id).token_field)
        try:
            async with httpx.AsyncClient(timeout=self.timeout_s) as client:
                r = await client.post(url, headers=headers, json=body)
        except httpx.HTTPError as e:
            raise ApiError(str(e) or e.__class__.__name__) from e
        if r.status_code != 200:
            raise ApiError(_error_detail(r))
        try:
            data = r.json()
        except ValueError:
            raise InvalidResponse() from None
        return extract_text(PROVIDERS[provider].style, data)

    async def generate(self, model_id: Optional[str], profile: ProfileData, first_name: str,
                       sample_style: Optional[str] = None) -> str:
        return await self.complete(model_id, outreach_prompt(profile, first_name, sample_style))

    async def compare_models(self, model_ids: Sequence[str], profile: ProfileData, first_name: str,
                             sample_style: Optional[str] = None,
                             on_result: Optional[Callable[[ModelTestResult], Awaitable[None]]] = None,
                             ) -> List[ModelTestResult]:
        """Generate the same message with each model in turn and record the outcome."""
        results: List[ModelTestResult] = []
        for model_id in model_ids:
            started = time.monotonic()
            try:
                text = await self.generate(model_id, profile, first_name, sample_style)
                res = ModelTestResult(model_id=model_id, success=True, message=text)
            except AIError as e:
                res = ModelTestResult(model_id=model_id, success=False, error=e.message)
            res.elapsed_s = round(time.monotonic() - started, 3)
            results.append(res)
            if on_result is not None:
                await on_result(res)
        return results
