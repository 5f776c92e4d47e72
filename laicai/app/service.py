from __future__ import annotations

import logging
from typing import Any

from laicai.app.analysis.pipeline import AnalysisPipeline
from laicai.app.analysis.prompts import (
    ANALYSIS_SYSTEM_PROMPT,
    QA_SYSTEM_PROMPT,
    build_analysis_prompt,
    build_qa_prompt,
)
from laicai.app.config import Settings
from laicai.app.datasources.factory import build_default_quote_resolver
from laicai.app.datasources.quote.resolver import QuoteResolver
from laicai.app.llm.gateway import ReportLLMGateway
from laicai.app.parsing.engine import ReportDocumentEngine

logger = logging.getLogger("report.service")


class ReportAnalysisService:
    """财报分析主流程：文本抽取 -> 大模型分析 -> 结构化解析 -> 行情补全。"""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        gateway: ReportLLMGateway | None = None,
        resolver: QuoteResolver | None = None,
        engine: ReportDocumentEngine | None = None,
    ) -> None:
        self.settings = settings or Settings.from_env()
        self.gateway = gateway or ReportLLMGateway(self.settings)
        self.resolver = resolver or build_default_quote_resolver(self.settings)
        self.engine = engine or ReportDocumentEngine()
        self.pipeline = AnalysisPipeline(self.resolver)

    def analyze_document(self, filename: str, raw_bytes: bytes, content_type: str = "") -> dict[str, Any]:
        """分析上传的财报文件。

        抽取失败抛出 ``DocumentParseError``，模型调用失败抛出 ``UpstreamError``；
        行情相关的失败不会外抛，最差返回占位行情。
        """
        logger.info(
            "report_received file=%s content_type=%s bytes=%s", filename, content_type or "-", len(raw_bytes)
        )
        parsed = self.engine.extract(filename=filename, raw_bytes=raw_bytes, content_type=content_type)
        logger.info(
            "report_extracted file=%s chars=%s note=%s duration_ms=%s",
            filename,
            len(parsed.plain_text),
            parsed.parse_note,
            parsed.trace.duration_ms,
        )
        raw_output = self.gateway.generate(
            ANALYSIS_SYSTEM_PROMPT,
            build_analysis_prompt(filename, parsed.plain_text, self.settings.report_max_chars),
            max_tokens=self.settings.llm_max_tokens,
        )
        result = self.pipeline.produce(raw_output)
        return {"success": True, "fileName": filename, **result.to_dict()}

    def answer_question(self, question: str, report_content: str) -> dict[str, Any]:
        """基于已生成的报告内容回答追问。"""
        question = (question or "").strip()
        report_content = (report_content or "").strip()
        if not question or not report_content:
            raise ValueError("缺少必要参数")
        answer = self.gateway.generate(
            QA_SYSTEM_PROMPT,
            build_qa_prompt(question, report_content, self.settings.report_max_chars),
            max_tokens=self.settings.qa_max_tokens,
        )
        return {"success": True, "answer": answer}

    def health(self) -> dict[str, Any]:
        return {
            "status": "ok",
            "message": "来财研报服务运行正常",
            "quote_sources": self.resolver.debug_snapshot(),
        }
