from __future__ import annotations

from laicai.app.datasources.quote.common import DelimitedQuoteAdapter, FieldLayout


class SinaQuoteAdapter(DelimitedQuoteAdapter):
    """Sina real-time feed: ``var hq_str_sh600000="name,open,prev_close,price,...";``."""

    source_id = "sina"
    delimiter = ","
    layout = FieldLayout(
        name=0,
        open=1,
        prev_close=2,
        price=3,
        high=4,
        low=5,
        volume=8,
        amount=9,
        high_52w=33,
        low_52w=34,
        pe=39,
        pb=46,
    )
    # GBK names are often mangled by proxies; always synthesize the display name.
    trust_provider_name = False

    def build_url(self, api_code: str) -> str:
        return f"https://hq.sinajs.cn/list={api_code}"

    def build_headers(self) -> dict[str, str]:
        return {"Referer": "https://finance.sina.com.cn"}
