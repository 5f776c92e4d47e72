from __future__ import annotations

from laicai.app.config import Settings
from laicai.app.datasources.base.adapter import DataSourceConfig, QuoteAdapterProtocol
from laicai.app.datasources.directory.akshare_source import AkshareDirectorySource
from laicai.app.datasources.directory.service import InstrumentDirectory
from laicai.app.datasources.directory.zhitu import ZhituDirectorySource
from laicai.app.datasources.quote.resolver import QuoteResolver
from laicai.app.datasources.quote.sina import SinaQuoteAdapter
from laicai.app.datasources.quote.tencent import TencentQuoteAdapter

QUOTE_ADAPTERS = {
    "sina": SinaQuoteAdapter,
    "tencent": TencentQuoteAdapter,
}


def _source_config(settings: Settings, source_id: str, overrides: dict[str, int | None] | None = None) -> DataSourceConfig:
    # Same per-call timeout for every upstream; fallback replaces retries.
    return DataSourceConfig(
        source_id=source_id,
        timeout_seconds=float(settings.datasource_request_timeout_seconds),
        retry_count=0,
        proxy_url=str(settings.datasource_proxy_url or ""),
        user_agent=str(settings.datasource_user_agent or ""),
        field_overrides=dict(overrides or {}),
    )


def build_default_directory(settings: Settings | None = None) -> InstrumentDirectory:
    """Build the instrument directory selected by ``directory_source``."""

    cfg = settings or Settings.from_env()
    if cfg.directory_source == "akshare":
        return InstrumentDirectory(AkshareDirectorySource(), cache_enabled=cfg.directory_cache_enabled)
    if cfg.directory_source == "none":
        return InstrumentDirectory(None, cache_enabled=False)
    source = ZhituDirectorySource(
        _source_config(cfg, "zhitu"),
        token=cfg.zhitu_api_token,
        api_base=cfg.zhitu_api_base,
    )
    return InstrumentDirectory(source, cache_enabled=cfg.directory_cache_enabled)


def build_default_quote_adapters(settings: Settings | None = None) -> list[QuoteAdapterProtocol]:
    """Instantiate adapters in ``quote_chain`` priority order."""

    cfg = settings or Settings.from_env()
    layouts = cfg.load_quote_field_layouts()
    adapters: list[QuoteAdapterProtocol] = []
    for source_id in cfg.quote_chain:
        adapter_cls = QUOTE_ADAPTERS.get(source_id)
        if adapter_cls is None:
            raise ValueError(f"unknown quote source: {source_id}")
        adapters.append(adapter_cls(_source_config(cfg, source_id, layouts.get(source_id))))
    return adapters


def build_default_quote_resolver(
    settings: Settings | None = None,
    directory: InstrumentDirectory | None = None,
) -> QuoteResolver:
    """Build the quote resolver with datasource-aware runtime settings."""

    cfg = settings or Settings.from_env()
    return QuoteResolver(
        build_default_quote_adapters(cfg),
        directory if directory is not None else build_default_directory(cfg),
        deadline_seconds=float(cfg.quote_deadline_seconds),
    )
