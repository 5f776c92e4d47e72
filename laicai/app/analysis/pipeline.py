from __future__ import annotations

import logging

from laicai.app.analysis.models import AnalysisResult
from laicai.app.analysis.parser import ReportResponseParser
from laicai.app.datasources.quote.resolver import QuoteResolver

logger = logging.getLogger("analysis.pipeline")


class AnalysisPipeline:
    """Parse model output, then attach a quote when the report names a stock code."""

    def __init__(self, resolver: QuoteResolver, parser: ReportResponseParser | None = None) -> None:
        self.resolver = resolver
        self.parser = parser or ReportResponseParser()

    def produce(self, raw_model_output: str) -> AnalysisResult:
        analysis = self.parser.parse(raw_model_output)
        if not analysis.stock_code:
            logger.info("analysis_without_stock_code metrics=%s", len(analysis.metrics))
            return AnalysisResult(analysis=analysis, quote=None)
        quote = self.resolver.resolve_quote(analysis.stock_code)
        return AnalysisResult(analysis=analysis, quote=quote)
