from __future__ import annotations

import json
import logging
import re
from typing import Any

from laicai.app.analysis.models import Direction, MetricEntry, ReportAnalysis
from laicai.app.errors import ReportDecodeError

logger = logging.getLogger("analysis.parser")

_FENCE_OPEN = re.compile(r"^```[A-Za-z0-9_+-]*[ \t]*\r?\n?")
_FENCE_CLOSE = re.compile(r"\r?\n?[ \t]*```$")
_NEGATIVE_CHANGE = re.compile(r"(?<![\d.])-\s*\d")
_EMPTY_CODES = {"", "null", "none", "n/a", "na", "无"}


def strip_fences(raw: str) -> str:
    """Remove a leading ```lang fence and a trailing ``` fence, then trim."""
    text = (raw or "").strip()
    text = _FENCE_OPEN.sub("", text, count=1)
    text = _FENCE_CLOSE.sub("", text, count=1)
    return text.strip()


def decode_report_payload(text: str) -> dict[str, Any]:
    try:
        payload = json.loads(text)
    except (json.JSONDecodeError, TypeError) as ex:
        raise ReportDecodeError(f"invalid json: {ex}") from ex
    if not isinstance(payload, dict):
        raise ReportDecodeError(f"expected a JSON object, got {type(payload).__name__}")
    return payload


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def _direction(kind: Any, change_label: str) -> Direction:
    label = _text(kind).lower()
    if label in {"negative", "down", "负面"}:
        return "negative"
    if label in {"positive", "up", "正面"}:
        return "positive"
    return "negative" if _NEGATIVE_CHANGE.search(change_label) else "positive"


def _metrics(value: Any) -> tuple[MetricEntry, ...]:
    if not isinstance(value, list):
        return ()
    entries: list[MetricEntry] = []
    for item in value:
        if not isinstance(item, dict):
            continue
        change = _text(item.get("change"))
        entries.append(
            MetricEntry(
                name=_text(item.get("name")),
                value=_text(item.get("value")),
                change_label=change,
                direction=_direction(item.get("type"), change),
            )
        )
    return tuple(entries)


def _stock_code(value: Any) -> str | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, int):
        # JSON numbers lose leading zeros: 1 -> 000001.
        return str(value).zfill(6) if value >= 0 else None
    code = _text(value)
    if code.lower() in _EMPTY_CODES:
        return None
    return code


class ReportResponseParser:
    """Turn raw model output into a ``ReportAnalysis``; never raises."""

    def parse(self, raw: str) -> ReportAnalysis:
        text = strip_fences(raw)
        try:
            payload = decode_report_payload(text)
        except ReportDecodeError as ex:
            logger.warning("report_decode_failed error=%s raw=%r", ex, raw)
            return ReportAnalysis(metrics=(), analysis_text=text, stock_code=None)
        return ReportAnalysis(
            metrics=_metrics(payload.get("metrics")),
            analysis_text=_text(payload.get("analysis")),
            stock_code=_stock_code(payload.get("stockCode")),
        )
