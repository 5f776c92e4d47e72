from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True)
class ParseTrace:
    parser_name: str
    duration_ms: int = 0
    notes: list[str] = field(default_factory=list)


@dataclass(slots=True)
class ParseResult:
    plain_text: str
    parse_note: str
    trace: ParseTrace
