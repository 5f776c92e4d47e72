from __future__ import annotations

import logging

from fastapi import FastAPI, File, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from laicai.app.errors import (
    DocumentParseError,
    UpstreamAuthError,
    UpstreamError,
    UpstreamRateLimited,
    UpstreamTimeout,
)
from laicai.app.service import ReportAnalysisService

logger = logging.getLogger("report.http")


def error_status_code(ex: Exception) -> int:
    if isinstance(ex, UpstreamAuthError):
        return 401
    if isinstance(ex, UpstreamRateLimited):
        return 429
    if isinstance(ex, UpstreamTimeout):
        return 408
    if isinstance(ex, ValueError):
        return 400
    return 500


def error_payload(ex: Exception) -> dict[str, str]:
    if isinstance(ex, (UpstreamError, DocumentParseError)):
        code = ex.code
    elif isinstance(ex, ValueError):
        code = "invalid_request"
    else:
        code = "internal_error"
    return {"error": str(ex), "code": code}


def _error_response(ex: Exception) -> JSONResponse:
    status = error_status_code(ex)
    if status >= 500:
        logger.exception("request_failed error=%s", ex)
    else:
        logger.warning("request_rejected status=%s error=%s", status, ex)
    return JSONResponse(status_code=status, content=error_payload(ex))


def create_app(service: ReportAnalysisService | None = None) -> FastAPI:
    svc = service or ReportAnalysisService()
    app = FastAPI(title="Laicai Report Analyst API")
    # 允许前端本地开发跨域访问后端接口
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(svc.settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.post("/api/analyze")
    def analyze(file: UploadFile = File(...)):
        try:
            raw_bytes = file.file.read()
            return svc.analyze_document(file.filename or "uploaded.bin", raw_bytes, file.content_type or "")
        except Exception as ex:  # noqa: BLE001
            return _error_response(ex)

    @app.post("/api/qa")
    def qa(payload: dict):
        try:
            return svc.answer_question(str(payload.get("question", "")), str(payload.get("reportContent", "")))
        except Exception as ex:  # noqa: BLE001
            return _error_response(ex)

    @app.get("/api/health")
    def health():
        return svc.health()

    return app
