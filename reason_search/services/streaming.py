from __future__ import annotations

import asyncio
from typing import AsyncIterator, Protocol

from reason_search.models.events import EventKind, EventStatus, ProgressEvent
from reason_search.models.execution import AnalysisStep, ResultRecord, SearchStep
from reason_search.models.findings import AnalysisFinding, GapReport, Synthesis
from reason_search.models.research_plan import ResearchPlan, SourceKind

PLAN_EVENT_ID = "research-plan"
GAP_ANALYSIS_EVENT_ID = "gap-analysis"
SYNTHESIS_EVENT_ID = "final-synthesis"
PROGRESS_EVENT_ID = "research-progress"

SEARCH_EVENT_KINDS: dict[SourceKind, EventKind] = {
    SourceKind.WEB: EventKind.SEARCH_WEB,
    SourceKind.ACADEMIC: EventKind.SEARCH_ACADEMIC,
    SourceKind.SOCIAL: EventKind.SEARCH_SOCIAL,
}

_SOURCE_LABELS: dict[SourceKind, str] = {
    SourceKind.WEB: "the web",
    SourceKind.ACADEMIC: "academic papers",
    SourceKind.SOCIAL: "X/Twitter",
}

_FOLLOW_UP_LABELS: dict[SourceKind, str] = {
    SourceKind.WEB: "web",
    SourceKind.ACADEMIC: "academic",
    SourceKind.SOCIAL: "X/Twitter",
}


class ProgressSink(Protocol):
    def emit(self, event: ProgressEvent) -> None: ...


class ListProgressSink:
    """Collects events in memory, in emission order."""

    def __init__(self) -> None:
        self.events: list[ProgressEvent] = []

    def emit(self, event: ProgressEvent) -> None:
        self.events.append(event)


class QueueProgressSink:
    """Bounded asynchronous sink; emission never blocks the orchestrator.

    When the queue is full the oldest pending event is discarded, since
    consumers overwrite by id and the newest state matters most.
    """

    def __init__(self, maxsize: int = 256) -> None:
        self._queue: asyncio.Queue[ProgressEvent | None] = asyncio.Queue(maxsize=max(maxsize, 1))
        self.dropped = 0

    def emit(self, event: ProgressEvent) -> None:
        self._put(event)

    def close(self) -> None:
        self._put(None)

    def _put(self, item: ProgressEvent | None) -> None:
        while True:
            try:
                self._queue.put_nowait(item)
                return
            except asyncio.QueueFull:
                self._queue.get_nowait()
                self.dropped += 1

    async def events(self) -> AsyncIterator[ProgressEvent]:
        while True:
            event = await self._queue.get()
            if event is None:
                return
            yield event
            if event.is_terminal:
                return


def plan_started() -> ProgressEvent:
    return ProgressEvent(
        id=PLAN_EVENT_ID,
        kind=EventKind.PLAN,
        status=EventStatus.RUNNING,
        title="Research Plan",
        message="Creating research plan...",
        overwrite=True,
    )


def plan_completed(plan: ResearchPlan, total_steps: int) -> ProgressEvent:
    return ProgressEvent(
        id=PLAN_EVENT_ID,
        kind=EventKind.PLAN,
        status=EventStatus.COMPLETED,
        title="Research Plan",
        message="Research plan created",
        overwrite=True,
        payload={"plan": plan.model_dump(mode="json"), "totalSteps": total_steps},
    )


def _search_title(step: SearchStep, *, done: bool) -> str:
    query = step.directive.query
    label = _SOURCE_LABELS[step.source_type]
    if step.follow_up:
        return f'Additional {_FOLLOW_UP_LABELS[step.source_type]} search for "{query}"'
    verb = "Searched" if done else "Searching"
    return f'{verb} {label} for "{query}"'


def search_started(step: SearchStep) -> ProgressEvent:
    if step.follow_up:
        message = f"Searching {step.source_type.value} sources to fill knowledge gap: {step.directive.rationale}"
    else:
        message = f"Searching {step.directive.source.value} sources..."
    return ProgressEvent(
        id=step.id,
        kind=SEARCH_EVENT_KINDS[step.source_type],
        status=EventStatus.RUNNING,
        title=_search_title(step, done=False),
        message=message,
        payload={"query": step.directive.query},
    )


def search_completed(step: SearchStep, record: ResultRecord) -> ProgressEvent:
    results = [item.to_dict() for item in record.items]
    return ProgressEvent(
        id=step.id,
        kind=SEARCH_EVENT_KINDS[step.source_type],
        status=EventStatus.COMPLETED,
        title=_search_title(step, done=True),
        message=f"Found {len(results)} results",
        overwrite=True,
        payload={"query": step.directive.query, "results": results},
    )


def search_failed(step: SearchStep, error: Exception) -> ProgressEvent:
    return ProgressEvent(
        id=step.id,
        kind=SEARCH_EVENT_KINDS[step.source_type],
        status=EventStatus.FAILED,
        title=_search_title(step, done=False),
        message=str(error),
        overwrite=True,
        payload={"query": step.directive.query},
    )


def analysis_started(step: AnalysisStep) -> ProgressEvent:
    return ProgressEvent(
        id=step.id,
        kind=EventKind.ANALYSIS,
        status=EventStatus.RUNNING,
        title=f"Analyzing {step.directive.type}",
        message=f"Analyzing {step.directive.type}...",
        payload={"analysisType": step.directive.type},
    )


def analysis_completed(step: AnalysisStep, finding: AnalysisFinding) -> ProgressEvent:
    return ProgressEvent(
        id=step.id,
        kind=EventKind.ANALYSIS,
        status=EventStatus.COMPLETED,
        title=f"Analysis of {step.directive.type} complete",
        message="Analysis complete",
        overwrite=True,
        payload={
            "analysisType": step.directive.type,
            "findings": [f.model_dump(mode="json") for f in finding.findings],
        },
    )


def analysis_failed(event_id: str, analysis_type: str, error: Exception) -> ProgressEvent:
    return ProgressEvent(
        id=event_id,
        kind=EventKind.ANALYSIS,
        status=EventStatus.FAILED,
        title=f"Analysis of {analysis_type} failed",
        message=str(error),
        overwrite=True,
        payload={"analysisType": analysis_type},
    )


def gap_analysis_started() -> ProgressEvent:
    return ProgressEvent(
        id=GAP_ANALYSIS_EVENT_ID,
        kind=EventKind.ANALYSIS,
        status=EventStatus.RUNNING,
        title="Research Gaps and Limitations",
        message="Analyzing research gaps and limitations...",
        payload={"analysisType": "gaps"},
    )


def gap_analysis_completed(
    report: GapReport, *, completed_steps: int, total_steps: int
) -> ProgressEvent:
    return ProgressEvent(
        id=GAP_ANALYSIS_EVENT_ID,
        kind=EventKind.ANALYSIS,
        status=EventStatus.COMPLETED,
        title="Research Gaps and Limitations",
        message=(
            f"Identified {len(report.limitations)} limitations and "
            f"{len(report.knowledge_gaps)} knowledge gaps"
        ),
        overwrite=True,
        payload={
            "analysisType": "gaps",
            "findings": [
                {
                    "insight": limitation.description,
                    "evidence": limitation.potential_solutions,
                    "confidence": limitation.confidence,
                }
                for limitation in report.limitations
            ],
            "gaps": [gap.model_dump(mode="json") for gap in report.knowledge_gaps],
            "recommendations": [r.model_dump(mode="json") for r in report.recommended_followup],
            "completedSteps": completed_steps,
            "totalSteps": total_steps,
        },
    )


def synthesis_started() -> ProgressEvent:
    return ProgressEvent(
        id=SYNTHESIS_EVENT_ID,
        kind=EventKind.ANALYSIS,
        status=EventStatus.RUNNING,
        title="Final Research Synthesis",
        message="Synthesizing all research findings...",
        payload={"analysisType": "synthesis"},
    )


def synthesis_completed(
    synthesis: Synthesis, *, completed_steps: int, total_steps: int
) -> ProgressEvent:
    return ProgressEvent(
        id=SYNTHESIS_EVENT_ID,
        kind=EventKind.ANALYSIS,
        status=EventStatus.COMPLETED,
        title="Final Research Synthesis",
        message=f"Synthesized {len(synthesis.key_findings)} key findings",
        overwrite=True,
        payload={
            "analysisType": "synthesis",
            "findings": [
                {
                    "insight": f.finding,
                    "evidence": f.supporting_evidence,
                    "confidence": f.confidence,
                }
                for f in synthesis.key_findings
            ],
            "uncertainties": synthesis.remaining_uncertainties,
            "completedSteps": completed_steps,
            "totalSteps": total_steps,
        },
    )


def research_progress(completed_steps: int, total_steps: int) -> ProgressEvent:
    return ProgressEvent(
        id=PROGRESS_EVENT_ID,
        kind=EventKind.PROGRESS,
        status=EventStatus.COMPLETED,
        title="Research Progress",
        message="Research complete",
        overwrite=True,
        payload={
            "completedSteps": completed_steps,
            "totalSteps": total_steps,
            "isComplete": True,
        },
    )
