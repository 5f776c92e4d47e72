from __future__ import annotations

from laicai.app.datasources.directory.akshare_source import AkshareDirectorySource
from laicai.app.datasources.directory.models import DirectoryEntry
from laicai.app.datasources.directory.service import InstrumentDirectory
from laicai.app.datasources.directory.zhitu import ZhituDirectorySource

__all__ = [
    "AkshareDirectorySource",
    "DirectoryEntry",
    "InstrumentDirectory",
    "ZhituDirectorySource",
]
