from __future__ import annotations

import re
from typing import Any

_BULLET_CHARS = "•◦▪▫●○■□◆◇▶►➤➢✓✔-–—*·"
_BULLET_PATTERN = re.compile(rf"^\s*(?:[{re.escape(_BULLET_CHARS)}]\s*|\d+[.)]\s+)")


def normalize_line(line: str) -> str:
    return re.sub(r"\s+", " ", line).strip()


def is_bullet_like(line: str) -> bool:
    return bool(_BULLET_PATTERN.match(line))


def strip_bullet_prefix(line: str) -> str:
    return _BULLET_PATTERN.sub("", line, count=1).strip()


def safe_str(value: Any, max_len: int = 1500) -> str:
    if not isinstance(value, str):
        return ""
    text = normalize_line(value)
    if len(text) > max_len:
        text = text[:max_len].rstrip()
    return text


def safe_str_list(value: Any, max_items: int, max_len: int = 400) -> list[str]:
    if isinstance(value, str):
        value = re.split(r"[\n;]", value)
    if not isinstance(value, list):
        return []
    output: list[str] = []
    for item in value:
        text = safe_str(item, max_len=max_len)
        if text:
            output.append(text)
        if len(output) >= max_items:
            break
    return output
