from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class DirectoryEntry:
    """One listed instrument, keyed by its suffixed code (``600000.SH``)."""

    code: str
    name: str
    source_id: str = ""

    @property
    def bare_code(self) -> str:
        return self.code.split(".", 1)[0]

    @property
    def exchange(self) -> str:
        _, _, suffix = self.code.partition(".")
        return suffix
