from __future__ import annotations

EXCHANGES = ("SH", "SZ", "BJ")


def split_instrument_code(code: str) -> tuple[str, str]:
    """Split ``600000.SH`` / ``SH600000`` / ``600000`` into ``(bare, exchange)``.

    The exchange is empty when the input carries none.
    """

    value = (code or "").strip().upper()
    if "." in value:
        left, _, right = value.partition(".")
        if right in EXCHANGES:
            return left, right
        if left in EXCHANGES:
            return right, left
        return left, ""
    if value[:2] in EXCHANGES and value[2:].isdigit():
        return value[2:], value[:2]
    return value, ""


def infer_exchange(bare_code: str) -> str:
    """Shanghai codes start with 6; everything else is routed to Shenzhen."""

    return "SH" if bare_code.startswith("6") else "SZ"


def normalize_stock_code(code: str) -> str:
    """Normalize stock code into SH/SZ-prefixed uppercase format."""

    bare, exchange = split_instrument_code(code)
    return f"{exchange or infer_exchange(bare)}{bare}"


def to_suffixed_code(code: str) -> str:
    """``600000`` -> ``600000.SH``, the key format of instrument directories."""

    bare, exchange = split_instrument_code(code)
    return f"{bare}.{exchange or infer_exchange(bare)}"


def to_api_code(code: str) -> str:
    """``600000.SH`` -> ``sh600000``, the key format of Sina and Tencent feeds."""

    return normalize_stock_code(code).lower()


def decode_response(content: bytes, encoding: str | None = None) -> str:
    """Decode response body with practical fallback chain.

    Data providers frequently return mixed encodings (UTF-8/GBK/GB18030).
    """

    if encoding:
        return content.decode(encoding, errors="replace")
    for candidate in ("utf-8", "gbk", "gb18030"):
        try:
            return content.decode(candidate)
        except UnicodeDecodeError:
            continue
    return content.decode("gb18030", errors="replace")
