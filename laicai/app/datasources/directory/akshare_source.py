from __future__ import annotations

import os

from laicai.app.datasources.base.utils import to_suffixed_code
from laicai.app.datasources.directory.models import DirectoryEntry


class AkshareDirectorySource:
    """A-share code/name list via ``akshare.stock_info_a_code_name``."""

    source_id = "akshare"
    available = True

    def fetch_entries(self) -> list[DirectoryEntry]:
        os.environ.setdefault("TQDM_DISABLE", "1")
        try:
            import akshare as ak  # type: ignore
        except Exception as ex:  # noqa: BLE001
            raise RuntimeError("akshare not installed. run: pip install 'laicai-report-analyst[directory]'") from ex

        base_df = ak.stock_info_a_code_name()
        entries: list[DirectoryEntry] = []
        for row in base_df.to_dict("records"):
            code = str(row.get("code", "")).strip()
            if not code:
                continue
            entries.append(
                DirectoryEntry(
                    code=to_suffixed_code(code),
                    name=str(row.get("name", "")).strip(),
                    source_id=self.source_id,
                )
            )
        return entries
