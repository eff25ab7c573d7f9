from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Awaitable, Protocol, TypeVar

from reason_search.config import settings
from reason_search.errors import MalformedResultError, ProviderError
from reason_search.models.execution import ResultItem
from reason_search.models.research_plan import SourceKind
from reason_search.services import logger as log_service
from reason_search.tools import brave_search, openalex_search, tavily_search, web_utils
from reason_search.tools.tavily_search import SearchResult

T = TypeVar("T")


class SearchProvider(Protocol):
    async def search_web(self, query: str, depth: str, max_results: int) -> list[ResultItem]: ...

    async def search_academic(self, query: str, max_results: int) -> list[ResultItem]: ...

    async def search_social(self, query: str, max_results: int) -> list[ResultItem]: ...


@dataclass
class WebSearchResponse:
    results: list[SearchResult]
    provider: str
    fallback_from: str | None = None
    fallback_reason: str | None = None


async def web_search(
    query: str,
    *,
    search_depth: str = "advanced",
    max_results: int = 10,
) -> WebSearchResponse:
    """Run a general web search with the configured provider."""
    provider = settings.search_provider.lower().strip()
    use_fallback = settings.search_fallback_to_tavily

    if provider == "tavily":
        results = await tavily_search.search(
            query=query, search_depth=search_depth, max_results=max_results
        )
        return WebSearchResponse(results=results, provider="tavily")

    if provider == "brave":
        try:
            results = await brave_search.search(query=query, max_results=max_results)
            if results or not use_fallback:
                return WebSearchResponse(results=results, provider="brave")
            reason = "brave returned zero results"
        except Exception as e:
            if not use_fallback:
                raise
            reason = str(e)

        fallback_results = await tavily_search.search(
            query=query, search_depth=search_depth, max_results=max_results
        )
        return WebSearchResponse(
            results=fallback_results,
            provider="tavily",
            fallback_from="brave",
            fallback_reason=reason,
        )

    raise ValueError(f"Unsupported SEARCH_PROVIDER: {settings.search_provider}")


def web_result_to_item(result: SearchResult) -> ResultItem:
    return ResultItem(
        source=SourceKind.WEB,
        title=result.title,
        url=result.url,
        content=web_utils.clean_content(result.content),
    )


def paper_to_item(paper: openalex_search.Paper) -> ResultItem:
    return ResultItem(
        source=SourceKind.ACADEMIC,
        title=paper.title or "",
        url=paper.url or "",
        content=web_utils.clean_content(paper.summary),
    )


def social_result_to_item(result: SearchResult) -> ResultItem:
    """Map a social search hit to a post item; raises if no post id is found."""
    post_id = web_utils.extract_post_id(result.url)
    if not post_id:
        raise MalformedResultError(
            SourceKind.SOCIAL.value, result.url, "no post id in URL"
        )
    return ResultItem(
        source=SourceKind.SOCIAL,
        title=result.title or "Tweet",
        url=result.url,
        content=web_utils.clean_content(result.content),
        tweet_id=post_id,
    )


class SearchProviderFacade:
    """Uniform interface over the web, academic and social backends.

    Every vendor failure, timeout included, surfaces as ProviderError.
    """

    def __init__(self, timeout_seconds: float | None = None):
        self.timeout_seconds = (
            timeout_seconds if timeout_seconds is not None else settings.provider_timeout_seconds
        )

    async def _call(self, source: SourceKind, query: str, call: Awaitable[T]) -> T:
        t0 = time.monotonic()
        try:
            result = await asyncio.wait_for(call, timeout=self.timeout_seconds)
        except asyncio.TimeoutError as e:
            log_service.log_provider_call(
                source.value,
                query,
                duration_ms=int((time.monotonic() - t0) * 1000),
                status="timeout",
                error=f"timed out after {self.timeout_seconds}s",
            )
            raise ProviderError(source.value, f"timed out after {self.timeout_seconds}s") from e
        except ProviderError:
            raise
        except Exception as e:
            log_service.log_provider_call(
                source.value,
                query,
                duration_ms=int((time.monotonic() - t0) * 1000),
                status="error",
                error=str(e),
            )
            raise ProviderError(source.value, e) from e
        log_service.log_provider_call(
            source.value,
            query,
            results=len(result) if isinstance(result, list) else 0,
            duration_ms=int((time.monotonic() - t0) * 1000),
        )
        return result

    async def search_web(self, query: str, depth: str, max_results: int) -> list[ResultItem]:
        response = await self._call(
            SourceKind.WEB,
            query,
            web_search(query, search_depth=depth, max_results=max_results),
        )
        if response.fallback_from:
            log_service.log_event(
                event_type="search_fallback",
                message=f"Web search fell back from {response.fallback_from}",
                reason=response.fallback_reason,
            )
        return [web_result_to_item(r) for r in response.results]

    async def search_academic(self, query: str, max_results: int) -> list[ResultItem]:
        papers = await self._call(
            SourceKind.ACADEMIC,
            query,
            openalex_search.search(query, max_results=max_results),
        )
        return [paper_to_item(p) for p in papers]

    async def search_social(self, query: str, max_results: int) -> list[ResultItem]:
        raw = await self._call(
            SourceKind.SOCIAL,
            query,
            tavily_search.search(
                query=query,
                search_depth="advanced",
                max_results=max_results,
                include_domains=settings.social_domain_list,
            ),
        )
        items: list[ResultItem] = []
        for result in raw:
            try:
                items.append(social_result_to_item(result))
            except MalformedResultError as e:
                log_service.logger.warning("Dropping social result: %s", e)
        return items
