from __future__ import annotations

import csv
import io
import time
from pathlib import Path

import pypdf
import xlrd
from openpyxl import load_workbook

from laicai.app.errors import DocumentParseError, UnsupportedDocumentError

from .models import ParseResult, ParseTrace

_CONTENT_TYPES = {
    "application/pdf": ".pdf",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": ".xlsx",
    "application/vnd.ms-excel": ".xls",
    "text/csv": ".csv",
    "application/csv": ".csv",
}


class ReportDocumentEngine:
    """Extract plain text from uploaded PDF, Excel and CSV financial reports."""

    SUPPORTED_EXT = (".pdf", ".xlsx", ".xlsm", ".xls", ".csv")
    max_sheets = 8
    max_rows = 1500
    max_cols = 32

    def resolve_extension(self, filename: str, content_type: str = "") -> str:
        ext = str(Path(filename or "").suffix or "").lower()
        if not ext:
            ext = _CONTENT_TYPES.get((content_type or "").split(";", 1)[0].strip().lower(), "")
        return ext

    def supports(self, *, filename: str, content_type: str = "") -> bool:
        return self.resolve_extension(filename, content_type) in self.SUPPORTED_EXT

    def extract(self, *, filename: str, raw_bytes: bytes, content_type: str = "") -> ParseResult:
        started = time.perf_counter()
        ext = self.resolve_extension(filename, content_type)
        if ext not in self.SUPPORTED_EXT:
            raise UnsupportedDocumentError("不支持的文件类型，请上传PDF、Excel或CSV文件")
        if not raw_bytes:
            raise DocumentParseError("上传的文件为空")

        if ext == ".pdf":
            text, note = self._extract_pdf(raw_bytes), "pdf_pypdf_extract"
        elif ext == ".csv":
            text, note = self._extract_csv(raw_bytes), "csv_extract"
        elif ext == ".xls":
            text, note = self._extract_legacy_workbook(raw_bytes), "xls_extract"
        else:
            text, note = self._extract_workbook(raw_bytes), "xlsx_extract"

        if not text.strip():
            raise DocumentParseError("未能从文件中提取到文本内容")
        trace = ParseTrace(
            parser_name="report_document_engine",
            duration_ms=int((time.perf_counter() - started) * 1000),
            notes=[note],
        )
        return ParseResult(plain_text=text, parse_note=note, trace=trace)

    @staticmethod
    def _extract_pdf(raw_bytes: bytes) -> str:
        try:
            reader = pypdf.PdfReader(io.BytesIO(raw_bytes))
            pages = [str(page.extract_text() or "") for page in reader.pages]
        except Exception as ex:  # noqa: BLE001
            raise DocumentParseError(f"PDF解析失败: {ex}") from ex
        return "\n".join(x for x in pages if x.strip())

    def _extract_workbook(self, raw_bytes: bytes) -> str:
        try:
            wb = load_workbook(filename=io.BytesIO(raw_bytes), read_only=True, data_only=True)
        except Exception as ex:  # noqa: BLE001
            raise DocumentParseError(f"Excel解析失败: {ex}") from ex
        lines: list[str] = []
        try:
            for ws in wb.worksheets[: self.max_sheets]:
                lines.append(f"[sheet:{ws.title}]")
                for row_idx, row in enumerate(ws.iter_rows(values_only=True), start=1):
                    if row_idx > self.max_rows:
                        break
                    cells = [str(c).strip() for c in row[: self.max_cols] if c is not None and str(c).strip()]
                    if cells:
                        lines.append(" | ".join(cells))
        finally:
            wb.close()
        return "\n".join(lines)

    def _extract_legacy_workbook(self, raw_bytes: bytes) -> str:
        try:
            book = xlrd.open_workbook(file_contents=raw_bytes, on_demand=True)
        except Exception as ex:  # noqa: BLE001
            raise DocumentParseError(f"Excel解析失败: {ex}") from ex
        lines: list[str] = []
        try:
            for sheet_idx in range(min(book.nsheets, self.max_sheets)):
                sheet = book.sheet_by_index(sheet_idx)
                lines.append(f"[sheet:{sheet.name}]")
                for row_idx in range(min(sheet.nrows, self.max_rows)):
                    values = sheet.row_values(row_idx, end_colx=min(sheet.ncols, self.max_cols))
                    cells = [self._legacy_cell_text(v) for v in values]
                    cells = [c for c in cells if c]
                    if cells:
                        lines.append(" | ".join(cells))
        finally:
            book.release_resources()
        return "\n".join(lines)

    @staticmethod
    def _legacy_cell_text(value: object) -> str:
        # BIFF stores every number as a float.
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        return str(value).strip()

    def _extract_csv(self, raw_bytes: bytes) -> str:
        text = self._decode_text_bytes(raw_bytes)
        lines: list[str] = []
        for row_idx, row in enumerate(csv.reader(io.StringIO(text)), start=1):
            if row_idx > self.max_rows:
                break
            cells = [c.strip() for c in row[: self.max_cols] if c.strip()]
            if cells:
                lines.append(" | ".join(cells))
        return "\n".join(lines)

    @staticmethod
    def _decode_text_bytes(raw_bytes: bytes) -> str:
        # Excel exports CSV as GBK on Chinese Windows.
        for enc in ("utf-8-sig", "gbk", "gb18030"):
            try:
                return raw_bytes.decode(enc)
            except UnicodeDecodeError:
                continue
        return raw_bytes.decode("latin1", errors="ignore")
