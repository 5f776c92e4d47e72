from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

from laicai.app.datasources.quote.models import QuoteRecord

Direction = Literal["positive", "negative"]


@dataclass(frozen=True, slots=True)
class MetricEntry:
    """One headline figure of the report, in display order."""

    name: str
    value: str
    change_label: str
    direction: Direction = "positive"

    def to_dict(self) -> dict[str, str]:
        return {
            "name": self.name,
            "value": self.value,
            "change": self.change_label,
            "type": self.direction,
        }


@dataclass(frozen=True, slots=True)
class ReportAnalysis:
    """Structured model output for one uploaded report."""

    metrics: tuple[MetricEntry, ...]
    analysis_text: str
    stock_code: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "metrics": [m.to_dict() for m in self.metrics],
            "analysis": self.analysis_text,
            "stockCode": self.stock_code,
        }


@dataclass(frozen=True, slots=True)
class AnalysisResult:
    """Parsed analysis plus the quote; ``quote`` is None when no code was named."""

    analysis: ReportAnalysis
    quote: QuoteRecord | None = None

    def to_dict(self) -> dict[str, Any]:
        payload = self.analysis.to_dict()
        payload["stockInfo"] = {"success": True, "data": self.quote.to_dict()} if self.quote is not None else None
        return payload
