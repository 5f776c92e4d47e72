from __future__ import annotations

from urllib.parse import quote

from laicai.app.datasources.base.adapter import DataSourceConfig
from laicai.app.datasources.base.http_client import DEFAULT_USER_AGENT, HttpClient
from laicai.app.datasources.directory.models import DirectoryEntry


class ZhituDirectorySource:
    """Full A-share list from zhituapi: ``[{"dm": "600000.SH", "mc": "浦发银行"}, ...]``."""

    source_id = "zhitu"

    def __init__(
        self,
        config: DataSourceConfig,
        *,
        token: str = "",
        api_base: str = "https://api.zhituapi.com",
        client: HttpClient | None = None,
    ) -> None:
        self.config = config
        self.token = token
        self.api_base = api_base.rstrip("/")
        self.client = client or HttpClient(
            timeout_seconds=config.timeout_seconds,
            retry_count=config.retry_count,
            retry_backoff_seconds=config.retry_backoff_seconds,
            proxy_url=config.proxy_url,
            user_agent=config.user_agent or DEFAULT_USER_AGENT,
        )

    @property
    def available(self) -> bool:
        return bool(self.token.strip())

    def fetch_entries(self) -> list[DirectoryEntry]:
        if not self.available:
            raise RuntimeError("zhitu directory disabled: missing token")
        url = f"{self.api_base}/hs/list/all?token={quote(self.token)}"
        rows = self.client.get_json(url)
        if not isinstance(rows, list):
            raise RuntimeError("zhitu parse failed: expected a JSON array")
        entries: list[DirectoryEntry] = []
        for row in rows:
            if not isinstance(row, dict):
                continue
            code = str(row.get("dm", "")).strip().upper()
            if not code:
                continue
            entries.append(DirectoryEntry(code=code, name=str(row.get("mc", "")).strip(), source_id=self.source_id))
        return entries
