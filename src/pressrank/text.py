"""Plain-text helpers: tokenizing, rich-text flattening, highlights, slugs."""

from __future__ import annotations

import json
import re
from typing import Any

_WS_RE = re.compile(r"\s+")
_TAG_RE = re.compile(r"<[^>]+>")
_SLUG_STRIP_RE = re.compile(r"[^a-z0-9]+")

# Terms this short are matched but never wrapped in <mark>.
_MIN_HIGHLIGHT_LEN = 3
_SNIPPET_LENGTH = 200
_SNIPPET_LEAD = 50


def tokenize(text: str) -> list[str]:
    """Split on whitespace and lowercase; blank input gives ``[]``."""
    return [tok for tok in _WS_RE.split(text.strip().lower()) if tok]


def normalize_tag_name(name: str) -> str:
    return _WS_RE.sub(" ", name.strip().lower())


def slugify(text: str) -> str:
    return _SLUG_STRIP_RE.sub("-", text.strip().lower()).strip("-")


def extract_text(content: str | dict[str, Any] | None) -> str:
    """Flatten article content to plain text.

    Rich-text trees are expected in the ``{"blocks": [{"text": ...}]}`` shape;
    any other mapping is serialised so its strings stay searchable.
    """
    if not content:
        return ""
    if isinstance(content, dict):
        blocks = content.get("blocks")
        if isinstance(blocks, list):
            text = " ".join(
                str(block.get("text", ""))
                for block in blocks
                if isinstance(block, dict) and block.get("text")
            )
        else:
            text = json.dumps(content)
        return _TAG_RE.sub("", text).strip()
    return _TAG_RE.sub("", content).strip()


def highlight(text: str, terms: list[str]) -> str:
    """Wrap every occurrence of each long-enough term in ``<mark>``."""
    words = sorted(
        {t for t in terms if len(t) >= _MIN_HIGHLIGHT_LEN}, key=len, reverse=True
    )
    if not words:
        return text
    pattern = re.compile("|".join(re.escape(w) for w in words), re.IGNORECASE)
    return pattern.sub(lambda m: f"<mark>{m.group(0)}</mark>", text)


def snippet(text: str, terms: list[str], max_length: int = _SNIPPET_LENGTH) -> str | None:
    """Cut a highlighted window of *text* around the earliest matching term."""
    text = text.strip()
    if not text:
        return None

    lowered = text.lower()
    positions = [
        lowered.find(t) for t in terms if len(t) >= _MIN_HIGHLIGHT_LEN and t in lowered
    ]
    start = max(0, min(positions) - _SNIPPET_LEAD) if positions else 0

    window = text[start : start + max_length]
    if start > 0 and " " in window:
        window = window[window.index(" ") + 1 :]
    if len(text) > start + max_length:
        if " " in window:
            window = window[: window.rindex(" ")]
        window += "..."
    if start > 0:
        window = "..." + window

    return highlight(window, terms)
