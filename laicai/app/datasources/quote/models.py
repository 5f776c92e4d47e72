from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

PLACEHOLDER_NAME = "未找到股票"

ZERO_PRICE = "0.00"
ZERO_COUNT = "0"


@dataclass(frozen=True, slots=True)
class QuoteRecord:
    """Canonical quote; numeric fields stay decimal strings as the source sent them."""

    name: str
    code: str
    price: str = ZERO_PRICE
    change_percent: str = ZERO_PRICE
    change_amount: str = ZERO_PRICE
    open: str = ZERO_PRICE
    high: str = ZERO_PRICE
    low: str = ZERO_PRICE
    volume: str = ZERO_COUNT
    amount: str = ZERO_COUNT
    market_cap: str = ZERO_COUNT
    pe_ratio: str = ZERO_PRICE
    pb_ratio: str = ZERO_PRICE
    high_52w: str = ZERO_PRICE
    low_52w: str = ZERO_PRICE
    source_id: str = ""

    @classmethod
    def placeholder(cls, code: str) -> "QuoteRecord":
        return cls(name=PLACEHOLDER_NAME, code=code)

    @property
    def is_placeholder(self) -> bool:
        return self.name == PLACEHOLDER_NAME and not self.source_id

    def to_dict(self) -> dict[str, str]:
        """Wire shape consumed by the browser client."""
        return {
            "name": self.name,
            "code": self.code,
            "price": self.price,
            "change": f"{self.change_percent}%",
            "changeAmount": self.change_amount,
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "volume": self.volume,
            "amount": self.amount,
            "marketCap": self.market_cap,
            "pe": self.pe_ratio,
            "pb": self.pb_ratio,
            "high52w": self.high_52w,
            "low52w": self.low_52w,
            "source": self.source_id,
        }


ResultStatus = Literal["success", "not_found", "transport_error"]


@dataclass(frozen=True, slots=True)
class ProviderResult:
    """Outcome of one adapter call: success, not_found or transport_error."""

    status: ResultStatus
    source_id: str
    quote: QuoteRecord | None = None
    reason: str = ""

    @classmethod
    def success(cls, source_id: str, quote: QuoteRecord) -> "ProviderResult":
        return cls(status="success", source_id=source_id, quote=quote)

    @classmethod
    def not_found(cls, source_id: str, reason: str = "") -> "ProviderResult":
        return cls(status="not_found", source_id=source_id, reason=reason)

    @classmethod
    def transport_error(cls, source_id: str, reason: str) -> "ProviderResult":
        return cls(status="transport_error", source_id=source_id, reason=reason)

    @property
    def ok(self) -> bool:
        return self.status == "success" and self.quote is not None
