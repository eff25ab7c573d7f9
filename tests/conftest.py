"""Deterministic fakes for the search provider and structured generation service."""
from __future__ import annotations

from typing import Any, Callable

import pytest

from reason_search.errors import GenerationError, ProviderError
from reason_search.models.execution import ResultItem
from reason_search.models.findings import AnalysisFinding, GapReport, Synthesis
from reason_search.models.research_plan import ResearchPlan, SourceKind
from reason_search.services.streaming import ListProgressSink


class FakeProvider:
    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []
        self.fail_on_call: int | None = None

    def _record(self, source: SourceKind, query: str, max_results: int, depth: str | None = None):
        self.calls.append(
            {"source": source, "query": query, "max_results": max_results, "depth": depth}
        )
        if self.fail_on_call is not None and len(self.calls) == self.fail_on_call:
            raise ProviderError(source.value, "backend unavailable")
        return [
            ResultItem(
                source=source,
                title=f"{source.value} result for {query}",
                url=f"https://example.com/{source.value}/{len(self.calls)}",
                content=f"content about {query}",
                tweet_id="123" if source == SourceKind.SOCIAL else None,
            )
        ]

    async def search_web(self, query: str, depth: str, max_results: int) -> list[ResultItem]:
        return self._record(SourceKind.WEB, query, max_results, depth)

    async def search_academic(self, query: str, max_results: int) -> list[ResultItem]:
        return self._record(SourceKind.ACADEMIC, query, max_results)

    async def search_social(self, query: str, max_results: int) -> list[ResultItem]:
        return self._record(SourceKind.SOCIAL, query, max_results)


class FakeGenerator:
    """Returns canned values per schema; a callable value is called with the prompt."""

    def __init__(self, responses: dict[type, Any] | None = None) -> None:
        self.responses: dict[type, Any] = {
            AnalysisFinding: AnalysisFinding(),
            GapReport: GapReport(),
            Synthesis: Synthesis(),
        }
        self.responses.update(responses or {})
        self.calls: list[dict[str, Any]] = []

    async def generate(self, prompt, schema, *, caller="structured", temperature=None, model=None):
        self.calls.append({"prompt": prompt, "schema": schema, "caller": caller, "model": model})
        value = self.responses.get(schema)
        if isinstance(value, Exception):
            raise value
        if callable(value) and not isinstance(value, type):
            value = value(prompt)
        if value is None:
            raise GenerationError(f"no canned response for {schema.__name__}")
        if isinstance(value, dict):
            return schema.model_validate(value)
        return value

    def schemas_called(self) -> list[type]:
        return [call["schema"] for call in self.calls]


def build_plan(
    searches: list[tuple[str, str]] | None = None,
    analyses: list[str] | None = None,
    priority: int = 3,
) -> ResearchPlan:
    searches = searches if searches is not None else [("q1", "web"), ("q2", "web")]
    analyses = analyses if analyses is not None else ["trends"]
    return ResearchPlan.model_validate(
        {
            "search_queries": [
                {"query": q, "rationale": f"why {q}", "source": s, "priority": priority}
                for q, s in searches
            ],
            "required_analyses": [
                {"type": a, "description": f"describe {a}", "importance": 3} for a in analyses
            ],
        }
    )


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def make_generator() -> Callable[..., FakeGenerator]:
    return FakeGenerator


@pytest.fixture
def plan_factory() -> Callable[..., ResearchPlan]:
    return build_plan


@pytest.fixture
def sink() -> ListProgressSink:
    return ListProgressSink()
