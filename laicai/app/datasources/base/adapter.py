from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from laicai.app.datasources.directory.models import DirectoryEntry
    from laicai.app.datasources.quote.models import ProviderResult


@dataclass(slots=True)
class DataSourceConfig:
    """Shared runtime config for datasource adapters."""

    source_id: str
    timeout_seconds: float = 5.0
    retry_count: int = 0
    retry_backoff_seconds: float = 0.3
    proxy_url: str = ""
    user_agent: str = ""
    enabled: bool = True
    # Per-source field offset overrides, e.g. {"pe": 39}.
    field_overrides: dict[str, int | None] = field(default_factory=dict)


class QuoteAdapterProtocol(Protocol):
    source_id: str

    def resolve(self, code: str) -> "ProviderResult":
        ...


class DirectorySourceProtocol(Protocol):
    source_id: str

    def fetch_entries(self) -> list["DirectoryEntry"]:
        ...
