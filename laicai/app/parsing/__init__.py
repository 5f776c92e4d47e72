"""Text extraction for uploaded financial reports."""

from .engine import ReportDocumentEngine
from .models import ParseResult, ParseTrace

__all__ = [
    "ParseResult",
    "ParseTrace",
    "ReportDocumentEngine",
]
