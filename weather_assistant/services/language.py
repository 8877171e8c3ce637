from __future__ import annotations

import re
from typing import Any, Literal


# Hiragana + Katakana, CJK extension A, CJK unified ideographs.
_JAPANESE_RE = re.compile(r"[\u3040-\u30ff\u3400-\u4dbf\u4e00-\u9fff]")


def is_japanese_text(text: Any) -> bool:
    if not text or not isinstance(text, str):
        return False
    return _JAPANESE_RE.search(text) is not None


def detect_language(text: Any) -> Literal["ja", "en"]:
    return "ja" if is_japanese_text(text) else "en"
