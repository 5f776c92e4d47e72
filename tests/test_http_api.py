from __future__ import annotations

import json
import socket
import threading
import time
import unittest
import urllib.error
import urllib.request
import uuid

import uvicorn

from laicai.app.config import Settings
from laicai.app.datasources.quote.models import QuoteRecord
from laicai.app.errors import (
    DocumentParseError,
    UnsupportedDocumentError,
    UpstreamAuthError,
    UpstreamError,
    UpstreamRateLimited,
    UpstreamTimeout,
)
from laicai.app.http_api import create_app, error_payload, error_status_code
from laicai.app.service import ReportAnalysisService

MODEL_OUTPUT = (
    '{"metrics":[{"name":"营业收入","value":"2000亿元","change":"同比+5%","type":"positive"}],'
    '"analysis":"经营稳健","stockCode":"000651"}'
)
CSV_REPORT = "项目,本期\n营业收入,2000亿元\n".encode("utf-8")


class _StubGateway:
    def __init__(self) -> None:
        self.text = MODEL_OUTPUT
        self.error: Exception | None = None

    def generate(self, system_prompt: str, user_prompt: str, *, max_tokens: int | None = None) -> str:
        if self.error is not None:
            raise self.error
        return self.text


class _StubResolver:
    def resolve_quote(self, stock_code: str) -> QuoteRecord:
        return QuoteRecord(name="股票000651", code=stock_code, price="40.10", change_percent="+0.50", source_id="sina")

    def debug_snapshot(self) -> list[dict]:
        return [{"source_id": "sina", "adapter": "SinaQuoteAdapter"}]


def _free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return int(sock.getsockname()[1])


class HttpErrorMappingTestCase(unittest.TestCase):
    def test_error_status_mapping(self) -> None:
        self.assertEqual(error_status_code(UpstreamAuthError("key")), 401)
        self.assertEqual(error_status_code(UpstreamRateLimited("rate")), 429)
        self.assertEqual(error_status_code(UpstreamTimeout("slow")), 408)
        self.assertEqual(error_status_code(UpstreamError("other")), 500)
        self.assertEqual(error_status_code(UnsupportedDocumentError("docx")), 400)
        self.assertEqual(error_status_code(ValueError("missing")), 400)
        self.assertEqual(error_status_code(RuntimeError("bug")), 500)

    def test_error_payload_codes(self) -> None:
        self.assertEqual(error_payload(UpstreamTimeout("slow")), {"error": "slow", "code": "llm_timeout"})
        self.assertEqual(error_payload(DocumentParseError("empty"))["code"], "document_parse_failed")
        self.assertEqual(error_payload(ValueError("missing"))["code"], "invalid_request")
        self.assertEqual(error_payload(KeyError("x"))["code"], "internal_error")


class HttpApiTestCase(unittest.TestCase):
    """接口契约测试：在真实 uvicorn 服务上调用 `/api/*`，模型与行情使用桩实现。"""

    @classmethod
    def setUpClass(cls) -> None:
        cls.gateway = _StubGateway()
        service = ReportAnalysisService(Settings(), gateway=cls.gateway, resolver=_StubResolver())
        port = _free_port()
        cls.base_url = f"http://127.0.0.1:{port}"
        config = uvicorn.Config(create_app(service), host="127.0.0.1", port=port, log_level="warning")
        cls.server = uvicorn.Server(config)
        cls.thread = threading.Thread(target=cls.server.run, daemon=True)
        cls.thread.start()
        deadline = time.time() + 8.0
        while not cls.server.started:
            if time.time() > deadline:
                raise RuntimeError("uvicorn service did not become ready in time")
            time.sleep(0.05)

    @classmethod
    def tearDownClass(cls) -> None:
        cls.server.should_exit = True
        cls.thread.join(timeout=5)

    def setUp(self) -> None:
        self.gateway.text = MODEL_OUTPUT
        self.gateway.error = None

    def _send(self, req: urllib.request.Request) -> tuple[int, dict]:
        try:
            with urllib.request.urlopen(req, timeout=8) as resp:  # noqa: S310 - local test server
                return resp.status, json.loads(resp.read().decode("utf-8"))
        except urllib.error.HTTPError as ex:
            return ex.code, json.loads(ex.read().decode("utf-8"))

    def _post_json(self, path: str, payload: dict) -> tuple[int, dict]:
        req = urllib.request.Request(
            self.base_url + path,
            data=json.dumps(payload).encode("utf-8"),
            method="POST",
            headers={"Content-Type": "application/json"},
        )
        return self._send(req)

    def _upload(self, filename: str, raw: bytes, content_type: str) -> tuple[int, dict]:
        boundary = uuid.uuid4().hex
        body = (
            f"--{boundary}\r\n"
            f'Content-Disposition: form-data; name="file"; filename="{filename}"\r\n'
            f"Content-Type: {content_type}\r\n\r\n"
        ).encode("utf-8") + raw + f"\r\n--{boundary}--\r\n".encode("utf-8")
        req = urllib.request.Request(
            self.base_url + "/api/analyze",
            data=body,
            method="POST",
            headers={"Content-Type": f"multipart/form-data; boundary={boundary}"},
        )
        return self._send(req)

    def test_health(self) -> None:
        status, body = self._send(urllib.request.Request(self.base_url + "/api/health"))
        self.assertEqual(status, 200)
        self.assertEqual(body["status"], "ok")
        self.assertEqual(body["quote_sources"][0]["source_id"], "sina")

    def test_analyze_upload(self) -> None:
        status, body = self._upload("gree.csv", CSV_REPORT, "text/csv")
        self.assertEqual(status, 200)
        self.assertTrue(body["success"])
        self.assertEqual(body["fileName"], "gree.csv")
        self.assertEqual(body["analysis"], "经营稳健")
        self.assertEqual(body["metrics"][0]["change"], "同比+5%")
        self.assertEqual(body["stockInfo"]["data"]["code"], "000651")
        self.assertEqual(body["stockInfo"]["data"]["change"], "+0.50%")

    def test_analyze_unsupported_file_is_400(self) -> None:
        status, body = self._upload("report.docx", b"PK\x03\x04", "application/octet-stream")
        self.assertEqual(status, 400)
        self.assertEqual(body["code"], "unsupported_document")
        self.assertIn("error", body)

    def test_analyze_upstream_errors_map_to_status(self) -> None:
        cases = [
            (UpstreamAuthError("API密钥无效"), 401, "llm_auth_failed"),
            (UpstreamRateLimited("API请求频率过高"), 429, "llm_rate_limited"),
            (UpstreamTimeout("API请求超时"), 408, "llm_timeout"),
            (UpstreamError("AI分析失败"), 500, "llm_failed"),
        ]
        for error, expected_status, expected_code in cases:
            with self.subTest(code=expected_code):
                self.gateway.error = error
                status, body = self._upload("gree.csv", CSV_REPORT, "text/csv")
                self.assertEqual(status, expected_status)
                self.assertEqual(body, {"error": str(error), "code": expected_code})

    def test_qa_answer(self) -> None:
        self.gateway.text = "毛利率下降主要因原材料涨价"
        status, body = self._post_json("/api/qa", {"question": "毛利率为何下降？", "reportContent": "报告正文"})
        self.assertEqual(status, 200)
        self.assertEqual(body, {"success": True, "answer": "毛利率下降主要因原材料涨价"})

    def test_qa_missing_parameters_is_400(self) -> None:
        status, body = self._post_json("/api/qa", {"question": "毛利率为何下降？"})
        self.assertEqual(status, 400)
        self.assertEqual(body, {"error": "缺少必要参数", "code": "invalid_request"})

    def test_qa_timeout_is_408(self) -> None:
        self.gateway.error = UpstreamTimeout("API请求超时")
        status, body = self._post_json("/api/qa", {"question": "q", "reportContent": "r"})
        self.assertEqual(status, 408)
        self.assertEqual(body["code"], "llm_timeout")


if __name__ == "__main__":
    unittest.main()
