from __future__ import annotations

import re


_POST_URL_RE = re.compile(r"(?:twitter\.com|x\.com)/\w+/status/(\d+)", re.IGNORECASE)


def extract_post_id(url: str) -> str | None:
    """Return the numeric status id of an X/Twitter post URL, if any."""
    match = _POST_URL_RE.search(url or "")
    return match.group(1) if match else None


def clean_content(text: str, max_length: int = 8000) -> str:
    """Collapse whitespace and trim to max length."""
    text = re.sub(r"\s+", " ", text or "").strip()
    if len(text) > max_length:
        text = text[:max_length] + "..."
    return text
