from __future__ import annotations

from laicai.app.datasources.quote.common import DelimitedQuoteAdapter, FieldLayout
from laicai.app.datasources.quote.models import PLACEHOLDER_NAME, ProviderResult, QuoteRecord
from laicai.app.datasources.quote.resolver import QuoteResolver
from laicai.app.datasources.quote.sina import SinaQuoteAdapter
from laicai.app.datasources.quote.tencent import TencentQuoteAdapter

__all__ = [
    "PLACEHOLDER_NAME",
    "DelimitedQuoteAdapter",
    "FieldLayout",
    "ProviderResult",
    "QuoteRecord",
    "QuoteResolver",
    "SinaQuoteAdapter",
    "TencentQuoteAdapter",
]
