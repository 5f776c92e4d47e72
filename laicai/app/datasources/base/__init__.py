from __future__ import annotations

from laicai.app.datasources.base.adapter import DataSourceConfig
from laicai.app.datasources.base.http_client import HttpClient, HttpRequestError
from laicai.app.datasources.base.utils import (
    decode_response,
    infer_exchange,
    normalize_stock_code,
    split_instrument_code,
    to_api_code,
    to_suffixed_code,
)

__all__ = [
    "DataSourceConfig",
    "HttpClient",
    "HttpRequestError",
    "decode_response",
    "infer_exchange",
    "normalize_stock_code",
    "split_instrument_code",
    "to_api_code",
    "to_suffixed_code",
]
