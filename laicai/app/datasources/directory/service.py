from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field

from laicai.app.datasources.base.adapter import DirectorySourceProtocol
from laicai.app.datasources.base.utils import EXCHANGES, infer_exchange
from laicai.app.datasources.directory.models import DirectoryEntry

logger = logging.getLogger("directory")


@dataclass(frozen=True, slots=True)
class _DirectoryIndex:
    by_code: dict[str, DirectoryEntry] = field(default_factory=dict)
    by_bare: dict[str, DirectoryEntry] = field(default_factory=dict)

    @classmethod
    def build(cls, entries: list[DirectoryEntry]) -> "_DirectoryIndex":
        by_code: dict[str, DirectoryEntry] = {}
        by_bare: dict[str, DirectoryEntry] = {}
        # First listing wins, matching a linear scan of the source list.
        for entry in entries:
            by_code.setdefault(entry.code.upper(), entry)
            by_bare.setdefault(entry.bare_code.upper(), entry)
        return cls(by_code=by_code, by_bare=by_bare)


class InstrumentDirectory:
    """Maps loosely formatted stock codes onto listed, suffixed instruments.

    Lookup failures are never fatal: ``match`` returns ``None`` and the caller
    falls back to the inferred-suffix convention. With caching on, the list is
    fetched once per process and only read afterwards.
    """

    def __init__(self, source: DirectorySourceProtocol | None, *, cache_enabled: bool = True) -> None:
        self.source = source
        self.cache_enabled = cache_enabled
        self._index: _DirectoryIndex | None = None
        self._lock = threading.Lock()

    @property
    def available(self) -> bool:
        return self.source is not None and bool(getattr(self.source, "available", True))

    def match(self, code: str) -> DirectoryEntry | None:
        raw = (code or "").strip().upper()
        if not raw or not self.available:
            return None
        index = self._load_index()
        if index is None:
            return None
        # SH600000 is the same instrument as 600000.SH.
        if raw[:2] in EXCHANGES and raw[2:].isdigit():
            raw = f"{raw[2:]}.{raw[:2]}"
        entry = index.by_code.get(raw) or index.by_bare.get(raw)
        if entry is None and "." not in raw:
            entry = index.by_code.get(f"{raw}.{infer_exchange(raw)}")
        if entry is None:
            logger.info("directory_no_match code=%s", raw)
        return entry

    def _load_index(self) -> _DirectoryIndex | None:
        if self.cache_enabled and self._index is not None:
            return self._index
        if not self.cache_enabled:
            return self._fetch_index()
        with self._lock:
            if self._index is None:
                self._index = self._fetch_index()
            return self._index

    def _fetch_index(self) -> _DirectoryIndex | None:
        if self.source is None:
            return None
        try:
            entries = self.source.fetch_entries()
        except Exception as ex:  # noqa: BLE001
            logger.warning("directory_lookup_failed source=%s error=%s", getattr(self.source, "source_id", ""), ex)
            return None
        if not entries:
            logger.warning("directory_empty source=%s", getattr(self.source, "source_id", ""))
            return None
        logger.info("directory_loaded source=%s entries=%s", getattr(self.source, "source_id", ""), len(entries))
        return _DirectoryIndex.build(entries)
