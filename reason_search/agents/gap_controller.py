from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from reason_search.config import settings
from reason_search.errors import ResearchError
from reason_search.models.execution import ExpandedSteps, ResultsLedger
from reason_search.models.findings import AnalysisFinding, GapReport, Synthesis
from reason_search.models.research_plan import ResearchDepth, SearchDirective
from reason_search.services import logger as log_service
from reason_search.services import streaming
from reason_search.services.prompt_store import render_context
from reason_search.services.search_executor import ExecutionEngine
from reason_search.services.step_expander import build_gap_directives, expand_gap_report
from reason_search.services.streaming import ProgressSink
from reason_search.services.structured_generation import StructuredGenerationService


@dataclass
class GapFillOutcome:
    report: GapReport
    completed_steps: int
    total_steps: int
    synthesis: Synthesis | None = None


@dataclass(frozen=True, slots=True)
class GapPromptContext:
    results_json: str
    findings_json: str

    def template_values(self) -> dict[str, Any]:
        return {"results_json": self.results_json, "findings_json": self.findings_json}


@dataclass(frozen=True, slots=True)
class SynthesisPromptContext:
    results_json: str
    gap_report_json: str
    follow_up_json: str

    def template_values(self) -> dict[str, Any]:
        return {
            "results_json": self.results_json,
            "gap_report_json": self.gap_report_json,
            "follow_up_json": self.follow_up_json,
        }


def should_deepen(depth: ResearchDepth, report: GapReport) -> bool:
    """A follow-up round runs only for advanced depth with at least one gap."""
    return depth == ResearchDepth.ADVANCED and len(report.knowledge_gaps) > 0


class GapFillController:
    """Reviews a round's results and builds or summarizes the follow-up round."""

    def __init__(
        self,
        generator: StructuredGenerationService,
        engine: ExecutionEngine,
        *,
        session_id: str = "",
        content_chars: int | None = None,
    ):
        self.generator = generator
        self.engine = engine
        self.session_id = session_id
        self.content_chars = content_chars or settings.ledger_item_content_chars

    async def run(
        self,
        ledger: ResultsLedger,
        findings: list[AnalysisFinding],
        depth: ResearchDepth,
        sink: ProgressSink,
        *,
        completed_steps: int,
    ) -> GapFillOutcome:
        """Review the ledger and, at advanced depth, close the gaps it names.

        The follow-up round appends to the same ledger, so the synthesis sees
        results from both rounds.
        """
        report, total_steps = await self.review(
            ledger, findings, sink, completed_steps=completed_steps, depth=depth
        )
        completed_steps += 1
        if not should_deepen(depth, report):
            return GapFillOutcome(
                report=report, completed_steps=completed_steps, total_steps=total_steps
            )

        follow_up = self.follow_up_steps(report)
        log_service.log_event(
            event_type="follow_up_round",
            message="Running follow-up searches for knowledge gaps",
            session_id=self.session_id,
            steps=follow_up.step_ids(),
        )
        await self.engine.run(follow_up, depth, sink, ledger=ledger)

        completed_steps += 1
        synthesis = await self.synthesize(
            ledger,
            report,
            sink,
            completed_steps=completed_steps,
            total_steps=total_steps,
        )
        return GapFillOutcome(
            report=report,
            completed_steps=completed_steps,
            total_steps=total_steps,
            synthesis=synthesis,
        )

    async def review(
        self,
        ledger: ResultsLedger,
        findings: list[AnalysisFinding],
        sink: ProgressSink,
        *,
        completed_steps: int,
        depth: ResearchDepth,
    ) -> tuple[GapReport, int]:
        """Run the gap analysis; returns the report and the invocation's step total."""
        sink.emit(streaming.gap_analysis_started())
        log_service.log_research_step(self.session_id, streaming.GAP_ANALYSIS_EVENT_ID, "running")

        context = GapPromptContext(
            results_json=ledger.serialize(content_chars=self.content_chars),
            findings_json=json.dumps([f.model_dump(mode="json") for f in findings]),
        )
        try:
            report = await self.generator.generate(
                render_context("gap_review.review", context),
                GapReport,
                caller="gap_controller.review",
                temperature=0.0,
            )
        except ResearchError as e:
            sink.emit(streaming.analysis_failed(streaming.GAP_ANALYSIS_EVENT_ID, "gaps", e))
            raise

        # Gap analysis always counts as one step; synthesis adds one more.
        total_steps = completed_steps + (2 if should_deepen(depth, report) else 1)
        sink.emit(
            streaming.gap_analysis_completed(
                report, completed_steps=completed_steps + 1, total_steps=total_steps
            )
        )
        log_service.log_research_step(
            self.session_id,
            streaming.GAP_ANALYSIS_EVENT_ID,
            "completed",
            {
                "limitations": len(report.limitations),
                "knowledge_gaps": len(report.knowledge_gaps),
            },
        )
        return report, total_steps

    def follow_up_steps(self, report: GapReport) -> ExpandedSteps:
        return expand_gap_report(report)

    def follow_up_directives(self, report: GapReport) -> list[SearchDirective]:
        return build_gap_directives(report)

    async def synthesize(
        self,
        ledger: ResultsLedger,
        report: GapReport,
        sink: ProgressSink,
        *,
        completed_steps: int,
        total_steps: int,
    ) -> Synthesis:
        sink.emit(streaming.synthesis_started())
        log_service.log_research_step(self.session_id, streaming.SYNTHESIS_EVENT_ID, "running")

        context = SynthesisPromptContext(
            results_json=ledger.serialize(content_chars=self.content_chars),
            gap_report_json=report.model_dump_json(),
            follow_up_json=json.dumps(
                [d.model_dump(mode="json") for d in self.follow_up_directives(report)]
            ),
        )
        try:
            synthesis = await self.generator.generate(
                render_context("gap_review.synthesis", context),
                Synthesis,
                caller="gap_controller.synthesis",
                temperature=0.0,
            )
        except ResearchError as e:
            sink.emit(streaming.analysis_failed(streaming.SYNTHESIS_EVENT_ID, "synthesis", e))
            raise

        sink.emit(
            streaming.synthesis_completed(
                synthesis, completed_steps=completed_steps, total_steps=total_steps
            )
        )
        log_service.log_research_step(
            self.session_id,
            streaming.SYNTHESIS_EVENT_ID,
            "completed",
            {"key_findings": len(synthesis.key_findings)},
        )
        return synthesis
