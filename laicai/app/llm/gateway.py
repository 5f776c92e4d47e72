from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any

from laicai.app.config import Settings
from laicai.app.datasources.base.http_client import HttpClient, HttpRequestError
from laicai.app.errors import UpstreamAuthError, UpstreamError, UpstreamRateLimited, UpstreamTimeout

logger = logging.getLogger("llm.gateway")


def _join_url(base: str, path: str) -> str:
    return base.rstrip("/") + "/" + path.lstrip("/")


@dataclass(slots=True)
class ProviderConfig:
    """Single model provider config."""

    name: str
    api_base: str
    model: str
    api_style: str = "openai_chat"  # openai_chat | anthropic_messages
    enabled: bool = True
    api_key: str = ""
    api_key_header: str = "Authorization"
    api_key_prefix: str = "Bearer "
    anthropic_version: str = "2023-06-01"
    max_tokens: int = 2000
    temperature: float = 0.7
    timeout_seconds: float = 30.0
    extra_headers: dict[str, str] = field(default_factory=dict)
    extra_body: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, payload: dict[str, Any], default_timeout: float) -> "ProviderConfig":
        key = str(payload.get("api_key", "")).strip()
        key_env = str(payload.get("api_key_env", "")).strip()
        if not key and key_env:
            key = os.getenv(key_env, "")
        return cls(
            name=str(payload.get("name", "unnamed")),
            api_base=str(payload.get("api_base", "")).strip(),
            model=str(payload.get("model", "")).strip(),
            api_style=str(payload.get("api_style", "openai_chat")).strip(),
            enabled=bool(payload.get("enabled", True)),
            api_key=key,
            api_key_header=str(payload.get("api_key_header", "Authorization")),
            api_key_prefix=str(payload.get("api_key_prefix", "Bearer ")),
            anthropic_version=str(payload.get("anthropic_version", "2023-06-01")),
            max_tokens=max(1, int(payload.get("max_tokens", 2000))),
            temperature=float(payload.get("temperature", 0.7)),
            timeout_seconds=float(payload.get("timeout_seconds", default_timeout)),
            extra_headers=dict(payload.get("extra_headers", {})),
            extra_body=dict(payload.get("extra_body", {})),
        )


def classify_error(ex: Exception, provider: str = "") -> UpstreamError:
    """Map a transport failure onto the upstream error taxonomy."""
    if isinstance(ex, UpstreamError):
        return ex
    if isinstance(ex, HttpRequestError):
        if ex.status in (401, 403):
            return UpstreamAuthError(f"{provider}: API密钥无效或已过期，请更新密钥", provider=provider)
        if ex.status == 429:
            return UpstreamRateLimited(f"{provider}: API请求频率过高，请稍后重试", provider=provider)
        if ex.timed_out:
            return UpstreamTimeout(f"{provider}: API请求超时，请检查网络连接或文件大小", provider=provider)
    return UpstreamError(f"{provider}: AI分析失败: {ex}", provider=provider)


class ReportLLMGateway:
    """Chat-completion gateway with ordered failover across providers.

    Prompt in, text out. Failures surface as ``UpstreamError`` subclasses so
    the HTTP layer can pick a status code; nothing here falls back to local text.
    """

    def __init__(self, settings: Settings, providers: list[ProviderConfig] | None = None) -> None:
        self.settings = settings
        self.providers = providers if providers is not None else self._load_configs()

    def _load_configs(self) -> list[ProviderConfig]:
        rows = self.settings.load_llm_provider_configs()
        return [ProviderConfig.from_dict(x, self.settings.llm_request_timeout_seconds) for x in rows]

    def generate(self, system_prompt: str, user_prompt: str, *, max_tokens: int | None = None) -> str:
        """Call providers in order and return the first non-empty text."""
        enabled = [p for p in self.providers if p.enabled]
        if not enabled:
            raise UpstreamAuthError("no llm providers configured: set LLM_API_KEY or LLM_CONFIG_PATH")

        last_error: UpstreamError | None = None
        for p in enabled:
            try:
                text = self._call_provider(p, system_prompt, user_prompt, max_tokens=max_tokens)
            except Exception as ex:  # noqa: BLE001
                last_error = classify_error(ex, p.name)
                logger.warning("llm_provider_error provider=%s code=%s error=%s", p.name, last_error.code, ex)
                continue
            if text.strip():
                logger.info("llm_provider_success provider=%s model=%s chars=%s", p.name, p.model, len(text))
                return text
            last_error = UpstreamError(f"{p.name}: empty response", provider=p.name)
        if last_error:
            raise last_error
        raise UpstreamError("unknown llm call error")

    def _call_provider(
        self,
        provider: ProviderConfig,
        system_prompt: str,
        user_prompt: str,
        *,
        max_tokens: int | None = None,
    ) -> str:
        if provider.api_style == "openai_chat":
            body: dict[str, Any] = {
                "model": provider.model,
                "messages": [
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                "temperature": provider.temperature,
                "max_tokens": max_tokens or provider.max_tokens,
                "stream": False,
            }
            body.update(provider.extra_body)
            url = _join_url(provider.api_base, "chat/completions")
            return self._parse_openai_response(self._post_json(provider, url, body))
        if provider.api_style == "anthropic_messages":
            body = {
                "model": provider.model,
                "system": system_prompt,
                "messages": [{"role": "user", "content": user_prompt}],
                "temperature": provider.temperature,
                "max_tokens": max_tokens or provider.max_tokens,
            }
            body.update(provider.extra_body)
            url = _join_url(provider.api_base, "messages")
            return self._parse_anthropic_response(self._post_json(provider, url, body))
        raise UpstreamError(f"unsupported api_style: {provider.api_style}", provider=provider.name)

    def _build_headers(self, provider: ProviderConfig) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if provider.api_key:
            headers[provider.api_key_header] = f"{provider.api_key_prefix}{provider.api_key}"
            if provider.api_style == "anthropic_messages":
                headers["x-api-key"] = provider.api_key
                headers["anthropic-version"] = provider.anthropic_version
        headers.update(provider.extra_headers)
        return headers

    def _post_json(self, provider: ProviderConfig, url: str, body: dict[str, Any]) -> str:
        client = HttpClient(timeout_seconds=provider.timeout_seconds, retry_count=0)
        payload = client.post_json_bytes(url, body, headers=self._build_headers(provider))
        text = payload.decode("utf-8", errors="ignore")
        if not text:
            raise UpstreamError("empty http response body", provider=provider.name)
        return text

    @staticmethod
    def _parse_openai_response(payload: str) -> str:
        data = json.loads(payload)
        choices = data.get("choices", [])
        if not choices:
            raise RuntimeError("openai response missing choices")
        message = choices[0].get("message", {})
        text = message.get("content", "")
        if not isinstance(text, str) or not text.strip():
            raise RuntimeError("openai response missing choices[0].message.content")
        return text.strip()

    @staticmethod
    def _parse_anthropic_response(payload: str) -> str:
        data = json.loads(payload)
        content = data.get("content", [])
        texts: list[str] = []
        if isinstance(content, list):
            for item in content:
                if isinstance(item, dict) and item.get("type") == "text":
                    texts.append(str(item.get("text", "")))
        if not texts:
            raise RuntimeError("anthropic response missing content.text")
        return "\n".join(texts).strip()
