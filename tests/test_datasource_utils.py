from __future__ import annotations

import unittest

from laicai.app.datasources.base.utils import (
    decode_response,
    normalize_stock_code,
    split_instrument_code,
    to_api_code,
    to_suffixed_code,
)


class DatasourceUtilsTestCase(unittest.TestCase):
    def test_split_instrument_code_variants(self) -> None:
        self.assertEqual(split_instrument_code("600000.SH"), ("600000", "SH"))
        self.assertEqual(split_instrument_code("sz000001"), ("000001", "SZ"))
        self.assertEqual(split_instrument_code(" 300750 "), ("300750", ""))
        self.assertEqual(split_instrument_code("SH.600000"), ("600000", "SH"))

    def test_normalize_stock_code_without_prefix(self) -> None:
        self.assertEqual(normalize_stock_code("600000"), "SH600000")
        self.assertEqual(normalize_stock_code("000001"), "SZ000001")
        self.assertEqual(normalize_stock_code("300750"), "SZ300750")

    def test_suffixed_and_api_codes_agree(self) -> None:
        for code in ("600000", "600000.SH", "SH600000", "sh600000"):
            self.assertEqual(to_suffixed_code(code), "600000.SH")
            self.assertEqual(to_api_code(code), "sh600000")
        self.assertEqual(to_api_code("000651"), "sz000651")

    def test_decode_response_prefers_utf8(self) -> None:
        payload = "行情正常".encode("utf-8")
        self.assertEqual(decode_response(payload), "行情正常")

    def test_decode_response_fallback_to_gbk(self) -> None:
        payload = "腾讯行情".encode("gbk")
        self.assertEqual(decode_response(payload), "腾讯行情")


if __name__ == "__main__":
    unittest.main()
