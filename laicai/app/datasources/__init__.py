from __future__ import annotations

from laicai.app.datasources.factory import (
    build_default_directory,
    build_default_quote_adapters,
    build_default_quote_resolver,
)

__all__ = [
    "build_default_directory",
    "build_default_quote_adapters",
    "build_default_quote_resolver",
]
