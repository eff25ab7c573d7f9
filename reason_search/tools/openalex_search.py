"""Academic search over the OpenAlex works API."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

import httpx

from reason_search.config import settings

WORKS_PATH = "/works"


@dataclass
class Paper:
    title: str
    url: str
    summary: str
    year: int | None = None


def abstract_from_inverted_index(inverted: Optional[dict[str, list[int]]]) -> Optional[str]:
    if not inverted:
        return None
    max_pos = -1
    for positions in inverted.values():
        if positions:
            max_pos = max(max_pos, max(positions))
    if max_pos < 0:
        return None
    words = [""] * (max_pos + 1)
    for word, positions in inverted.items():
        for pos in positions or []:
            if 0 <= pos <= max_pos:
                words[pos] = word
    text = " ".join(token for token in words if token)
    return text.strip() or None


def _work_url(work: dict[str, Any]) -> str:
    primary = work.get("primary_location") or {}
    best_oa = work.get("best_oa_location") or {}
    for candidate in (
        primary.get("landing_page_url"),
        best_oa.get("landing_page_url"),
        work.get("doi"),
        work.get("id"),
    ):
        if candidate:
            return str(candidate)
    return ""


def work_to_paper(work: dict[str, Any]) -> Paper:
    title = work.get("display_name") or work.get("title") or ""
    summary = abstract_from_inverted_index(work.get("abstract_inverted_index")) or title
    return Paper(
        title=title,
        url=_work_url(work),
        summary=summary,
        year=work.get("publication_year"),
    )


async def search(query: str, *, max_results: int = 5) -> list[Paper]:
    """Search OpenAlex for research papers matching the query."""
    params: dict[str, Any] = {
        "search": query,
        "per-page": max(min(max_results, 200), 1),
        "filter": "type:article",
    }
    if settings.openalex_mailto:
        params["mailto"] = settings.openalex_mailto

    base_url = settings.openalex_base_url.rstrip("/")
    async with httpx.AsyncClient(timeout=settings.provider_timeout_seconds) as client:
        response = await client.get(f"{base_url}{WORKS_PATH}", params=params)
        response.raise_for_status()
        payload = response.json()

    return [work_to_paper(work) for work in (payload.get("results") or [])[:max_results]]
