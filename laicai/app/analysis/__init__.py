from __future__ import annotations

from laicai.app.analysis.models import AnalysisResult, MetricEntry, ReportAnalysis
from laicai.app.analysis.parser import ReportResponseParser, strip_fences
from laicai.app.analysis.pipeline import AnalysisPipeline

__all__ = [
    "AnalysisPipeline",
    "AnalysisResult",
    "MetricEntry",
    "ReportAnalysis",
    "ReportResponseParser",
    "strip_fences",
]
