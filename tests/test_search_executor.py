from __future__ import annotations

import pytest

from reason_search.errors import GenerationError, ProviderError, SearchStepError
from reason_search.models.events import EventStatus
from reason_search.models.findings import AnalysisFinding
from reason_search.models.research_plan import ResearchDepth, SourceKind
from reason_search.services.search_executor import ExecutionEngine, result_cap
from reason_search.services.step_expander import expand_plan


def _engine(provider, generator) -> ExecutionEngine:
    return ExecutionEngine(provider, generator, min_results=1, max_results=10, content_chars=200)


def test_result_cap_by_source_and_priority():
    assert result_cap(SourceKind.WEB, 2, minimum=1, maximum=10) == 4
    assert result_cap(SourceKind.ACADEMIC, 4, minimum=1, maximum=10) == 2
    assert result_cap(SourceKind.WEB, 4, minimum=3, maximum=10) == 3
    assert result_cap(SourceKind.WEB, 2, minimum=1, maximum=3) == 3
    assert result_cap(SourceKind.SOCIAL, 4, minimum=1, maximum=10) == 4


@pytest.mark.asyncio
async def test_run_executes_steps_in_plan_order(fake_provider, make_generator, plan_factory, sink):
    plan = plan_factory(searches=[("q0", "all"), ("q1", "academic")], analyses=["trends"])
    steps = expand_plan(plan)

    ledger, findings = await _engine(fake_provider, make_generator()).run(
        steps, ResearchDepth.BASIC, sink
    )

    assert [c["source"] for c in fake_provider.calls] == [
        SourceKind.WEB,
        SourceKind.ACADEMIC,
        SourceKind.SOCIAL,
        SourceKind.ACADEMIC,
    ]
    assert len(ledger) == 4
    assert len(findings) == 1

    completed = [e.id for e in sink.events if e.status == EventStatus.COMPLETED]
    assert completed == steps.step_ids()
    # Every step finishes before the next one starts.
    lifecycle = [(e.id, e.status) for e in sink.events]
    for step_id in steps.step_ids():
        start = lifecycle.index((step_id, EventStatus.RUNNING))
        assert lifecycle[start + 1] == (step_id, EventStatus.COMPLETED)


@pytest.mark.asyncio
async def test_run_applies_result_caps_and_depth(fake_provider, make_generator, plan_factory, sink):
    plan = plan_factory(searches=[("q0", "all")], analyses=[], priority=2)

    await _engine(fake_provider, make_generator()).run(
        expand_plan(plan), ResearchDepth.ADVANCED, sink
    )

    caps = {c["source"]: c["max_results"] for c in fake_provider.calls}
    assert caps == {SourceKind.WEB: 4, SourceKind.ACADEMIC: 4, SourceKind.SOCIAL: 2}
    assert fake_provider.calls[0]["depth"] == "advanced"


@pytest.mark.asyncio
async def test_completed_events_carry_items_and_counts(fake_provider, make_generator, plan_factory, sink):
    plan = plan_factory(searches=[("q0", "social")], analyses=[])

    await _engine(fake_provider, make_generator()).run(expand_plan(plan), ResearchDepth.BASIC, sink)

    completed = sink.events[-1]
    assert completed.id == "search-social-0"
    assert completed.overwrite is True
    assert completed.message == "Found 1 results"
    assert completed.payload["results"][0]["tweetId"] == "123"


@pytest.mark.asyncio
async def test_analysis_prompt_includes_ledger_and_description(
    fake_provider, make_generator, plan_factory, sink
):
    generator = make_generator()
    plan = plan_factory(searches=[("solar adoption", "web")], analyses=["economics"])

    await _engine(fake_provider, generator).run(expand_plan(plan), ResearchDepth.BASIC, sink)

    prompt = generator.calls[0]["prompt"]
    assert generator.calls[0]["schema"] is AnalysisFinding
    assert "economics" in prompt
    assert "describe economics" in prompt
    assert "content about solar adoption" in prompt


@pytest.mark.asyncio
async def test_provider_failure_fails_fast(fake_provider, make_generator, plan_factory, sink):
    fake_provider.fail_on_call = 2
    generator = make_generator()
    plan = plan_factory(searches=[("q0", "web"), ("q1", "web"), ("q2", "web")], analyses=["a"])

    with pytest.raises(SearchStepError) as excinfo:
        await _engine(fake_provider, generator).run(expand_plan(plan), ResearchDepth.BASIC, sink)

    assert isinstance(excinfo.value, ProviderError)
    assert excinfo.value.step_id == "search-web-1"
    assert len(fake_provider.calls) == 2
    assert generator.calls == []
    assert sink.events[-1].id == "search-web-1"
    assert sink.events[-1].status == EventStatus.FAILED


@pytest.mark.asyncio
async def test_analysis_failure_propagates(fake_provider, make_generator, plan_factory, sink):
    generator = make_generator({AnalysisFinding: GenerationError("bad json")})
    plan = plan_factory(searches=[("q0", "web")], analyses=["a"])

    with pytest.raises(GenerationError):
        await _engine(fake_provider, generator).run(expand_plan(plan), ResearchDepth.BASIC, sink)

    assert (sink.events[-1].id, sink.events[-1].status) == ("analysis-0", EventStatus.FAILED)
