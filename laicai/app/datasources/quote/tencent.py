from __future__ import annotations

from laicai.app.datasources.quote.common import DelimitedQuoteAdapter, FieldLayout


class TencentQuoteAdapter(DelimitedQuoteAdapter):
    """Tencent real-time feed: ``v_sh600000="1~name~code~price~prev_close~open~...";``."""

    source_id = "tencent"
    delimiter = "~"
    layout = FieldLayout(
        name=1,
        price=3,
        prev_close=4,
        open=5,
        high=33,
        low=34,
        volume=36,
        amount=37,
        pe=39,
        market_cap=45,
        pb=46,
    )
    trust_provider_name = True

    def build_url(self, api_code: str) -> str:
        return f"https://qt.gtimg.cn/q={api_code}"
