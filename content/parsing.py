"""content.parsing

JSON extraction for model output.

The provider asks for application/json, so this only has to cope with the
usual wrapping: code fences, chatter around the object, smart quotes and
trailing commas. No code is ever evaluated.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")

_SMART_QUOTES = str.maketrans({
    "\u201c": '"',
    "\u201d": '"',
    "\u2018": "'",
    "\u2019": "'",
    "\u00a0": " ",
})


@dataclass(frozen=True)
class ParseResult:
    data: Optional[Dict[str, Any]]
    raw: str
    cleaned: str
    error: str = ""


def clean_model_text(raw: str) -> str:
    s = (raw or "").strip()
    fenced = _FENCE_RE.search(s)
    if fenced:
        s = (fenced.group(1) or "").strip()
    start, end = s.find("{"), s.rfind("}")
    if start >= 0 and end > start:
        s = s[start : end + 1]
    s = s.translate(_SMART_QUOTES)
    return _TRAILING_COMMA_RE.sub(r"\1", s)


def try_parse_json(raw: str) -> ParseResult:
    """Best-effort parse. Returns ParseResult(data=None, error=...) on failure."""
    raw = (raw or "").strip()
    cleaned = clean_model_text(raw)
    try:
        obj = json.loads(cleaned)
    except json.JSONDecodeError as e:
        return ParseResult(data=None, raw=raw, cleaned=cleaned, error=f"json.loads: {e}")
    if not isinstance(obj, dict):
        return ParseResult(data=None, raw=raw, cleaned=cleaned, error="JSON root is not an object")
    return ParseResult(data=obj, raw=raw, cleaned=cleaned)
