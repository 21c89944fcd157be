"""Utility helpers for the tour recommender."""

from __future__ import annotations

import re
import urllib.parse
from typing import Optional

_BREAK_TAG = re.compile(r"<br\s*/?>", re.I)
_ANY_TAG = re.compile(r"<[^>]+>")
_SPACES = re.compile(r"[ \t]+")


def mask_secret(value: Optional[str], visible: int = 4) -> str:
    if not value:
        return "unset"
    if len(value) <= visible * 2:
        return "*" * len(value)
    return f"{value[:visible]}...{value[-visible:]}"


def clean_overview(text: Optional[str], limit: Optional[int] = None) -> str:
    """Strip the HTML markup TourAPI embeds in overviews (mostly <br>)."""
    if not text:
        return ""
    text = _BREAK_TAG.sub("\n", text)
    text = _ANY_TAG.sub("", text)
    lines = [_SPACES.sub(" ", line).strip() for line in text.splitlines()]
    text = "\n".join(line for line in lines if line)
    if limit is not None and len(text) > limit:
        text = text[:limit].rstrip() + "..."
    return text


def map_search_link(title: str, address: Optional[str]) -> str:
    query = f"{address or ''} {title}".strip()
    return f"https://map.naver.com/v5/search/{urllib.parse.quote(query)}"
