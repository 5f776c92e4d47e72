from __future__ import annotations

import unittest

from laicai.app.datasources.base.adapter import DataSourceConfig
from laicai.app.datasources.base.http_client import HttpRequestError
from laicai.app.datasources.quote.common import compute_change
from laicai.app.datasources.quote.sina import SinaQuoteAdapter
from laicai.app.datasources.quote.tencent import TencentQuoteAdapter

SINA_TEXT = 'var hq_str_sh600000="浦发银行,10.20,10.10,10.30,10.40,10.00,10.29,10.30,23456,123456.7";'


def _tencent_text(price: str = "9.80", prev_close: str = "10.00", width: int = 50) -> str:
    fields = ["0"] * width
    fields[0] = "1"
    fields[1] = "浦发银行"
    fields[2] = "600000"
    fields[3] = price
    fields[4] = prev_close
    fields[5] = "9.95"
    values = {33: "10.05", 34: "9.70", 36: "123456", 37: "789012", 39: "5.12", 45: "2876.5", 46: "0.45"}
    for idx, value in values.items():
        if idx < width:
            fields[idx] = value
    return 'v_sh600000="' + "~".join(fields) + '";'


class _StubClient:
    def __init__(self, payloads: dict[str, bytes]) -> None:
        self.payloads = payloads
        self.calls: list[tuple[str, dict[str, str] | None]] = []

    def get_bytes(self, url: str, headers: dict[str, str] | None = None) -> bytes:
        self.calls.append((url, headers))
        for key, value in self.payloads.items():
            if key in url:
                return value
        raise HttpRequestError(f"stub payload not found for url={url}", timed_out=True)


class DatasourceQuoteAdapterTestCase(unittest.TestCase):
    def test_sina_adapter_parse(self) -> None:
        client = _StubClient({"hq.sinajs.cn/list=sh600000": SINA_TEXT.encode("gbk")})
        adapter = SinaQuoteAdapter(DataSourceConfig(source_id="sina"), client=client)
        result = adapter.resolve("600000.SH")
        self.assertTrue(result.ok)
        quote = result.quote
        self.assertEqual(quote.code, "600000")
        self.assertEqual(quote.name, "股票600000")
        self.assertEqual(quote.price, "10.30")
        self.assertEqual(quote.change_amount, "+0.20")
        self.assertEqual(quote.change_percent, "+1.98")
        self.assertEqual(quote.open, "10.20")
        self.assertEqual(quote.volume, "23456")
        self.assertEqual(quote.amount, "123456.7")
        # Payload is too short for the optional metrics.
        self.assertEqual(quote.pe_ratio, "0.00")
        self.assertEqual(quote.high_52w, "0.00")
        self.assertEqual(quote.market_cap, "0")
        self.assertEqual(client.calls[0][1], {"Referer": "https://finance.sina.com.cn"})

    def test_sina_unknown_code_is_not_found(self) -> None:
        client = _StubClient({"hq.sinajs.cn": b'var hq_str_sz999999="";'})
        adapter = SinaQuoteAdapter(DataSourceConfig(source_id="sina"), client=client)
        result = adapter.resolve("999999")
        self.assertEqual(result.status, "not_found")
        self.assertIn("sz999999", client.calls[0][0])

    def test_sina_malformed_payload_is_transport_error(self) -> None:
        client = _StubClient({"hq.sinajs.cn": b"<html>Forbidden</html>"})
        adapter = SinaQuoteAdapter(DataSourceConfig(source_id="sina"), client=client)
        result = adapter.resolve("600000")
        self.assertEqual(result.status, "transport_error")

    def test_sina_short_payload_is_transport_error(self) -> None:
        client = _StubClient({"hq.sinajs.cn": 'var hq_str_sh600000="浦发银行,10.20,10.10,10.30";'.encode("gbk")})
        adapter = SinaQuoteAdapter(DataSourceConfig(source_id="sina"), client=client)
        result = adapter.resolve("600000")
        self.assertEqual(result.status, "transport_error")
        self.assertIn("field too short", result.reason)

    def test_network_failure_is_transport_error(self) -> None:
        adapter = SinaQuoteAdapter(DataSourceConfig(source_id="sina"), client=_StubClient({}))
        result = adapter.resolve("600519")
        self.assertEqual(result.status, "transport_error")
        self.assertIsNone(result.quote)

    def test_tencent_adapter_parse(self) -> None:
        client = _StubClient({"qt.gtimg.cn/q=sh600000": _tencent_text().encode("gbk")})
        adapter = TencentQuoteAdapter(DataSourceConfig(source_id="tencent"), client=client)
        result = adapter.resolve("600000")
        self.assertTrue(result.ok)
        quote = result.quote
        self.assertEqual(quote.name, "浦发银行")
        self.assertEqual(quote.source_id, "tencent")
        self.assertEqual(quote.change_amount, "-0.20")
        self.assertEqual(quote.change_percent, "-2.00")
        self.assertEqual(quote.high, "10.05")
        self.assertEqual(quote.low, "9.70")
        self.assertEqual(quote.pe_ratio, "5.12")
        self.assertEqual(quote.pb_ratio, "0.45")
        self.assertEqual(quote.market_cap, "2876.5")
        self.assertEqual(quote.high_52w, "0.00")
        self.assertEqual(quote.to_dict()["change"], "-2.00%")

    def test_tencent_optional_metrics_default_when_payload_short(self) -> None:
        client = _StubClient({"qt.gtimg.cn": _tencent_text(width=40).encode("gbk")})
        adapter = TencentQuoteAdapter(DataSourceConfig(source_id="tencent"), client=client)
        quote = adapter.resolve("600000").quote
        self.assertEqual(quote.pe_ratio, "5.12")
        self.assertEqual(quote.pb_ratio, "0.00")
        self.assertEqual(quote.market_cap, "0")

    def test_tencent_unknown_code_is_not_found(self) -> None:
        client = _StubClient({"qt.gtimg.cn": b'v_pv_none_match="1";'})
        adapter = TencentQuoteAdapter(DataSourceConfig(source_id="tencent"), client=client)
        self.assertEqual(adapter.resolve("999999").status, "not_found")

    def test_tencent_garbled_name_is_synthesized(self) -> None:
        text = _tencent_text().replace("浦发银行", "\ufffd\ufffd")
        client = _StubClient({"qt.gtimg.cn": text.encode("utf-8")})
        adapter = TencentQuoteAdapter(DataSourceConfig(source_id="tencent"), client=client)
        self.assertEqual(adapter.resolve("600000").quote.name, "股票600000")

    def test_layout_override_moves_optional_metric(self) -> None:
        client = _StubClient({"qt.gtimg.cn": _tencent_text().encode("gbk")})
        adapter = TencentQuoteAdapter(
            DataSourceConfig(source_id="tencent", field_overrides={"high_52w": 33, "pb": None}),
            client=client,
        )
        quote = adapter.resolve("600000").quote
        self.assertEqual(quote.high_52w, "10.05")
        self.assertEqual(quote.pb_ratio, "0.00")

    def test_layout_override_rejects_unknown_field(self) -> None:
        with self.assertRaises(ValueError):
            TencentQuoteAdapter(DataSourceConfig(source_id="tencent", field_overrides={"eps": 3}))

    def test_directly_built_adapter_sends_browser_user_agent(self) -> None:
        for adapter_cls in (SinaQuoteAdapter, TencentQuoteAdapter):
            adapter = adapter_cls(DataSourceConfig(source_id=adapter_cls.source_id))
            self.assertTrue(adapter.client.user_agent.startswith("Mozilla/5.0"), adapter_cls.__name__)

    def test_change_sign_follows_unrounded_difference(self) -> None:
        self.assertEqual(compute_change("10.00", "10.00"), ("+0.00", "+0.00"))
        self.assertEqual(compute_change("9.999", "10.00"), ("-0.00", "-0.01"))
        self.assertEqual(compute_change("10.0001", "10.00"), ("+0.00", "+0.00"))
        self.assertEqual(compute_change("11", "0"), ("+11.00", "+0.00"))
        for price, prev in (("8.88", "9.10"), ("12.5", "12.49"), ("3.3", "3.3")):
            amount, percent = compute_change(price, prev)
            negative = float(price) < float(prev)
            self.assertEqual(amount[0], "-" if negative else "+")
            self.assertEqual(percent[0], "-" if negative else "+")


if __name__ == "__main__":
    unittest.main()
