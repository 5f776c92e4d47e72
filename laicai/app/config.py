from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path

from laicai.app.datasources.base.http_client import DEFAULT_USER_AGENT

_APP_ROOT = Path(__file__).resolve().parents[1]
_CONFIG_DIR = _APP_ROOT / "config"

_DEFAULT_CORS_ORIGINS = ("http://127.0.0.1:3000", "http://localhost:3000")


def _to_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _to_tuple(value: str | None, default: tuple[str, ...]) -> tuple[str, ...]:
    if not value:
        return default
    items = tuple(x.strip().lower() for x in value.split(",") if x.strip())
    return items or default


@dataclass(slots=True)
class Settings:
    """系统配置。"""

    # 应用基础配置
    app_name: str = "laicai-report-analyst"
    env: str = "dev"
    cors_origins: tuple[str, ...] = _DEFAULT_CORS_ORIGINS

    # 大模型网关：优先读取 JSON 配置文件，缺省时使用单一 OpenAI 兼容供应商
    llm_config_path: str = str(_CONFIG_DIR / "llm_providers.local.json")
    llm_api_key: str = ""
    llm_api_base: str = "https://api.deepseek.com/v1"
    llm_model: str = "deepseek-chat"
    llm_request_timeout_seconds: float = 30.0
    llm_temperature: float = 0.7
    llm_max_tokens: int = 2000
    qa_max_tokens: int = 1000

    # 财报正文送入模型前的截断长度
    report_max_chars: int = 10000

    # 行情数据源
    datasource_request_timeout_seconds: float = 5.0
    datasource_proxy_url: str = ""
    datasource_user_agent: str = DEFAULT_USER_AGENT
    quote_chain: tuple[str, ...] = ("sina", "tencent")
    quote_deadline_seconds: float = 12.0
    # {"tencent": {"high_52w": 48}} 形式的字段偏移覆盖
    quote_field_layouts_json: str = "{}"

    # 证券代码目录
    directory_source: str = "zhitu"
    directory_cache_enabled: bool = True
    zhitu_api_base: str = "https://api.zhituapi.com"
    zhitu_api_token: str = ""

    @classmethod
    def from_env(cls) -> "Settings":
        """从环境变量构建配置对象。"""
        api_key = os.getenv("LLM_API_KEY", "").strip() or os.getenv("DEEPSEEK_API_KEY", "").strip()
        return cls(
            env=os.getenv("APP_ENV", "dev"),
            cors_origins=_to_tuple(os.getenv("CORS_ORIGINS"), _DEFAULT_CORS_ORIGINS),
            llm_config_path=os.getenv("LLM_CONFIG_PATH", str(_CONFIG_DIR / "llm_providers.local.json")),
            llm_api_key=api_key,
            llm_api_base=os.getenv("LLM_API_BASE", "https://api.deepseek.com/v1").strip(),
            llm_model=os.getenv("LLM_MODEL", "deepseek-chat").strip() or "deepseek-chat",
            llm_request_timeout_seconds=max(1.0, float(os.getenv("LLM_REQUEST_TIMEOUT_SECONDS", "30"))),
            llm_temperature=max(0.0, min(2.0, float(os.getenv("LLM_TEMPERATURE", "0.7")))),
            llm_max_tokens=max(1, int(os.getenv("LLM_MAX_TOKENS", "2000"))),
            qa_max_tokens=max(1, int(os.getenv("QA_MAX_TOKENS", "1000"))),
            report_max_chars=max(500, int(os.getenv("REPORT_MAX_CHARS", "10000"))),
            datasource_request_timeout_seconds=max(
                0.1, float(os.getenv("DATASOURCE_REQUEST_TIMEOUT_SECONDS", "5.0"))
            ),
            datasource_proxy_url=os.getenv("DATASOURCE_PROXY_URL", "").strip(),
            datasource_user_agent=os.getenv("DATASOURCE_USER_AGENT", "").strip() or DEFAULT_USER_AGENT,
            quote_chain=_to_tuple(os.getenv("QUOTE_CHAIN"), ("sina", "tencent")),
            quote_deadline_seconds=max(0.5, float(os.getenv("QUOTE_DEADLINE_SECONDS", "12"))),
            quote_field_layouts_json=os.getenv("QUOTE_FIELD_LAYOUTS", "{}"),
            directory_source=os.getenv("DIRECTORY_SOURCE", "zhitu").strip().lower() or "zhitu",
            directory_cache_enabled=_to_bool(os.getenv("DIRECTORY_CACHE_ENABLED"), True),
            zhitu_api_base=os.getenv("ZHITU_API_BASE", "https://api.zhituapi.com").strip(),
            zhitu_api_token=os.getenv("ZHITU_API_TOKEN", "").strip(),
        )

    def load_llm_provider_configs(self) -> list[dict]:
        """读取多提供商LLM配置（JSON数组）；文件不存在时退回环境变量中的单一供应商。"""
        path = Path(self.llm_config_path)
        if path.exists():
            payload = json.loads(path.read_text(encoding="utf-8"))
            if not isinstance(payload, list):
                raise ValueError("llm provider config must be a JSON array")
            return [x for x in payload if isinstance(x, dict)]
        if not self.llm_api_key:
            return []
        return [
            {
                "name": "default",
                "api_base": self.llm_api_base,
                "model": self.llm_model,
                "api_style": "openai_chat",
                "api_key": self.llm_api_key,
                "max_tokens": self.llm_max_tokens,
                "temperature": self.llm_temperature,
                "timeout_seconds": self.llm_request_timeout_seconds,
            }
        ]

    def load_quote_field_layouts(self) -> dict[str, dict[str, int | None]]:
        """读取按数据源划分的字段偏移覆盖表。"""
        payload = json.loads(self.quote_field_layouts_json or "{}")
        if not isinstance(payload, dict):
            raise ValueError("quote field layouts must be a JSON object")
        layouts: dict[str, dict[str, int | None]] = {}
        for source_id, fields in payload.items():
            if not isinstance(fields, dict):
                continue
            layouts[str(source_id).lower()] = {
                str(k): (None if v is None else int(v)) for k, v in fields.items()
            }
        return layouts
