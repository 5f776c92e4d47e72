from __future__ import annotations


class UpstreamError(RuntimeError):
    """Language-model call failed; carries a stable code for the HTTP layer."""

    code = "llm_failed"

    def __init__(self, message: str, *, provider: str = "") -> None:
        super().__init__(message)
        self.provider = provider


class UpstreamAuthError(UpstreamError):
    code = "llm_auth_failed"


class UpstreamRateLimited(UpstreamError):
    code = "llm_rate_limited"


class UpstreamTimeout(UpstreamError):
    code = "llm_timeout"


class DocumentParseError(ValueError):
    code = "document_parse_failed"


class UnsupportedDocumentError(DocumentParseError):
    code = "unsupported_document"


class ReportDecodeError(ValueError):
    """Model output does not match the report JSON contract."""


class QuotePayloadError(RuntimeError):
    """Quote provider returned a payload that cannot be parsed."""
