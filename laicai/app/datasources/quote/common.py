from __future__ import annotations

import logging
import re
from dataclasses import dataclass, fields, replace
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from laicai.app.datasources.base.adapter import DataSourceConfig
from laicai.app.datasources.base.http_client import DEFAULT_USER_AGENT, HttpClient
from laicai.app.datasources.base.utils import decode_response, infer_exchange, split_instrument_code
from laicai.app.datasources.quote.models import ZERO_COUNT, ZERO_PRICE, ProviderResult, QuoteRecord
from laicai.app.errors import QuotePayloadError

_CENT = Decimal("0.01")
_QUOTED_BLOCK = re.compile(r'="([^"]*)"')
_CONTROL_CHARS = re.compile(r"[\s\u0000-\u001f\u007f-\u009f]")

logger = logging.getLogger("quote.adapter")


@dataclass(frozen=True, slots=True)
class FieldLayout:
    """Positional offsets of one provider's delimited quote block.

    ``None`` marks a field the provider does not carry; optional metrics whose
    offset lies beyond the payload fall back to their zero value.
    """

    name: int | None
    price: int
    prev_close: int
    open: int
    high: int
    low: int
    volume: int
    amount: int
    market_cap: int | None = None
    pe: int | None = None
    pb: int | None = None
    high_52w: int | None = None
    low_52w: int | None = None

    _REQUIRED = ("price", "prev_close", "open", "high", "low", "volume", "amount")

    @property
    def required_width(self) -> int:
        return max(getattr(self, key) for key in self._REQUIRED) + 1

    def with_overrides(self, overrides: dict[str, int | None] | None) -> "FieldLayout":
        if not overrides:
            return self
        known = {f.name for f in fields(self)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise ValueError(f"unknown quote layout fields: {', '.join(unknown)}")
        for key in self._REQUIRED:
            if key in overrides and overrides[key] is None:
                raise ValueError(f"quote layout field {key} cannot be disabled")
        return replace(self, **overrides)


def to_decimal(value: str) -> Decimal | None:
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    return number if number.is_finite() else None


def format_signed(value: Decimal, negative: bool) -> str:
    """Two-decimal string that always carries an explicit sign."""
    return f"{'-' if negative else '+'}{abs(value).quantize(_CENT, rounding=ROUND_HALF_UP)}"


def compute_change(price: str, prev_close: str) -> tuple[str, str]:
    """Return ``(change_amount, change_percent)`` from price and previous close.

    Both strings take their sign from the unrounded difference so a tiny
    decline still reads as ``-0.00``.
    """

    current = to_decimal(price)
    previous = to_decimal(prev_close)
    if current is None or previous is None:
        raise QuotePayloadError(f"non-numeric price fields: price={price!r}, prev_close={prev_close!r}")
    diff = current - previous
    negative = diff < 0
    amount = format_signed(diff, negative)
    if previous == 0:
        return amount, format_signed(Decimal(0), negative)
    return amount, format_signed(diff / previous * 100, negative)


def pick(values: list[str], index: int | None, default: str) -> str:
    if index is None or not 0 <= index < len(values):
        return default
    return values[index].strip() or default


def clean_name(raw: str) -> str:
    """Strip whitespace/control characters; empty when the text is garbled."""
    name = _CONTROL_CHARS.sub("", raw or "")
    if "\ufffd" in name:
        return ""
    return name


def synthesized_name(code: str) -> str:
    return f"股票{code}"


def extract_block(text: str, delimiter: str) -> list[str] | None:
    """Return the delimited fields of the first quoted block.

    ``None`` means the provider answered but knows no such instrument.
    """

    matched = _QUOTED_BLOCK.search(text or "")
    if not matched:
        raise QuotePayloadError("quoted data block not found")
    block = matched.group(1).strip()
    if delimiter not in block:
        return None
    return block.split(delimiter)


class DelimitedQuoteAdapter:
    """Base for providers answering ``var x="f0<d>f1<d>...";`` style payloads."""

    source_id = ""
    delimiter = ","
    layout: FieldLayout
    # Provider names can arrive garbled; only trust them where decoding is reliable.
    trust_provider_name = False

    def __init__(self, config: DataSourceConfig, client: HttpClient | None = None) -> None:
        self.config = config
        self.layout = type(self).layout.with_overrides(config.field_overrides)
        self.client = client or HttpClient(
            timeout_seconds=config.timeout_seconds,
            retry_count=config.retry_count,
            retry_backoff_seconds=config.retry_backoff_seconds,
            proxy_url=config.proxy_url,
            user_agent=config.user_agent or DEFAULT_USER_AGENT,
        )

    def build_url(self, api_code: str) -> str:
        raise NotImplementedError

    def build_headers(self) -> dict[str, str]:
        return {}

    def resolve(self, code: str) -> ProviderResult:
        bare, exchange = split_instrument_code(code)
        api_code = f"{(exchange or infer_exchange(bare)).lower()}{bare}"
        url = self.build_url(api_code)
        try:
            payload = self.client.get_bytes(url, headers=self.build_headers())
        except Exception as ex:  # noqa: BLE001
            logger.warning("quote_fetch_failed source=%s code=%s error=%s", self.source_id, api_code, ex)
            return ProviderResult.transport_error(self.source_id, str(ex))
        try:
            values = extract_block(decode_response(payload), self.delimiter)
            if values is None:
                return ProviderResult.not_found(self.source_id, f"{api_code} not listed")
            if len(values) < self.layout.required_width:
                raise QuotePayloadError(
                    f"field too short: got {len(values)}, need {self.layout.required_width}"
                )
            record = self.build_record(bare, values)
        except QuotePayloadError as ex:
            logger.warning("quote_parse_failed source=%s code=%s error=%s", self.source_id, api_code, ex)
            return ProviderResult.transport_error(self.source_id, f"{self.source_id} parse failed: {ex}")
        return ProviderResult.success(self.source_id, record)

    def build_record(self, code: str, values: list[str]) -> QuoteRecord:
        layout = self.layout
        price = pick(values, layout.price, ZERO_PRICE)
        change_amount, change_percent = compute_change(price, pick(values, layout.prev_close, ZERO_PRICE))
        name = clean_name(pick(values, layout.name, "")) if self.trust_provider_name else ""
        return QuoteRecord(
            name=name or synthesized_name(code),
            code=code,
            price=price,
            change_percent=change_percent,
            change_amount=change_amount,
            open=pick(values, layout.open, ZERO_PRICE),
            high=pick(values, layout.high, ZERO_PRICE),
            low=pick(values, layout.low, ZERO_PRICE),
            volume=pick(values, layout.volume, ZERO_COUNT),
            amount=pick(values, layout.amount, ZERO_COUNT),
            market_cap=pick(values, layout.market_cap, ZERO_COUNT),
            pe_ratio=pick(values, layout.pe, ZERO_PRICE),
            pb_ratio=pick(values, layout.pb, ZERO_PRICE),
            high_52w=pick(values, layout.high_52w, ZERO_PRICE),
            low_52w=pick(values, layout.low_52w, ZERO_PRICE),
            source_id=self.source_id,
        )
