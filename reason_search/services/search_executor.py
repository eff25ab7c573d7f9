from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from reason_search.config import settings
from reason_search.errors import ProviderError, ResearchError, SearchStepError
from reason_search.models.execution import (
    AnalysisStep,
    ExpandedSteps,
    ResultItem,
    ResultRecord,
    ResultsLedger,
    SearchStep,
)
from reason_search.models.findings import AnalysisFinding
from reason_search.models.research_plan import ResearchDepth, SourceKind
from reason_search.services import logger as log_service
from reason_search.services import streaming
from reason_search.services.prompt_store import render_context
from reason_search.services.streaming import ProgressSink
from reason_search.services.structured_generation import StructuredGenerationService
from reason_search.tools.search_provider import SearchProvider


@dataclass(frozen=True, slots=True)
class AnalysisPromptContext:
    analysis_type: str
    description: str
    results_json: str

    def template_values(self) -> dict[str, Any]:
        return {
            "analysis_type": self.analysis_type,
            "description": self.description,
            "results_json": self.results_json,
        }


def result_cap(source: SourceKind, priority: int, *, minimum: int, maximum: int) -> int:
    """Max results for one step: higher priority numbers fetch fewer web/academic hits."""
    if source == SourceKind.SOCIAL:
        return priority
    return max(minimum, min(6 - priority, maximum))


class ExecutionEngine:
    """Runs one round of expanded steps strictly in plan order.

    Each step's `completed` event is emitted before the next step starts,
    which keeps event order identical to step order.
    """

    def __init__(
        self,
        provider: SearchProvider,
        generator: StructuredGenerationService,
        *,
        session_id: str = "",
        min_results: int | None = None,
        max_results: int | None = None,
        content_chars: int | None = None,
        analysis_temperature: float | None = None,
    ):
        self.provider = provider
        self.generator = generator
        self.session_id = session_id
        self.min_results = max(
            int(min_results if min_results is not None else settings.min_results_per_step), 1
        )
        self.max_results = max(
            int(max_results if max_results is not None else settings.max_results_per_step),
            self.min_results,
        )
        self.content_chars = content_chars or settings.ledger_item_content_chars
        self.analysis_temperature = (
            analysis_temperature
            if analysis_temperature is not None
            else settings.analysis_temperature
        )

    def _handler_for(
        self, source: SourceKind, depth: ResearchDepth
    ) -> Callable[[str, int], Awaitable[list[ResultItem]]]:
        handlers: dict[SourceKind, Callable[[str, int], Awaitable[list[ResultItem]]]] = {
            SourceKind.WEB: lambda q, n: self.provider.search_web(q, depth.value, n),
            SourceKind.ACADEMIC: self.provider.search_academic,
            SourceKind.SOCIAL: self.provider.search_social,
        }
        return handlers[source]

    async def run(
        self,
        steps: ExpandedSteps,
        depth: ResearchDepth,
        sink: ProgressSink,
        *,
        ledger: ResultsLedger | None = None,
    ) -> tuple[ResultsLedger, list[AnalysisFinding]]:
        ledger = ledger if ledger is not None else ResultsLedger()
        for step in steps.search_steps:
            await self.run_search_step(step, depth, sink, ledger)

        findings: list[AnalysisFinding] = []
        for step in steps.analysis_steps:
            findings.append(await self.run_analysis_step(step, ledger, sink))
        return ledger, findings

    async def run_search_step(
        self,
        step: SearchStep,
        depth: ResearchDepth,
        sink: ProgressSink,
        ledger: ResultsLedger,
    ) -> ResultRecord:
        sink.emit(streaming.search_started(step))
        log_service.log_research_step(self.session_id, step.id, "running", {"query": step.directive.query})

        cap = result_cap(
            step.source_type,
            step.directive.priority,
            minimum=self.min_results,
            maximum=self.max_results,
        )
        handler = self._handler_for(step.source_type, depth)
        try:
            items = await handler(step.directive.query, cap)
        except ProviderError as e:
            sink.emit(streaming.search_failed(step, e))
            log_service.log_research_step(self.session_id, step.id, "failed", {"error": str(e)})
            raise SearchStepError(step.id, e.source, e.cause) from e

        record = ResultRecord(source_type=step.source_type, directive=step.directive, items=list(items))
        ledger.append(record)
        sink.emit(streaming.search_completed(step, record))
        log_service.log_research_step(self.session_id, step.id, "completed", {"results": len(record.items)})
        return record

    async def run_analysis_step(
        self,
        step: AnalysisStep,
        ledger: ResultsLedger,
        sink: ProgressSink,
    ) -> AnalysisFinding:
        sink.emit(streaming.analysis_started(step))
        log_service.log_research_step(self.session_id, step.id, "running", {"type": step.directive.type})

        context = AnalysisPromptContext(
            analysis_type=step.directive.type,
            description=step.directive.description,
            results_json=ledger.serialize(content_chars=self.content_chars),
        )
        try:
            finding = await self.generator.generate(
                render_context("analysis.step", context),
                AnalysisFinding,
                caller=f"engine.{step.id}",
                temperature=self.analysis_temperature,
            )
        except ResearchError as e:
            sink.emit(streaming.analysis_failed(step.id, step.directive.type, e))
            log_service.log_research_step(self.session_id, step.id, "failed", {"error": str(e)})
            raise

        sink.emit(streaming.analysis_completed(step, finding))
        log_service.log_research_step(
            self.session_id, step.id, "completed", {"findings": len(finding.findings)}
        )
        return finding
