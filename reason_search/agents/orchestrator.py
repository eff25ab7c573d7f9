from __future__ import annotations

import time
from uuid import uuid4

from reason_search.agents.gap_controller import GapFillController
from reason_search.agents.planner import PlanBuilder
from reason_search.llm_client import get_model
from reason_search.models.findings import ResearchOutcome
from reason_search.models.research_plan import ResearchDepth
from reason_search.services import logger as log_service
from reason_search.services import streaming
from reason_search.services.search_executor import ExecutionEngine
from reason_search.services.step_expander import expand_plan
from reason_search.services.streaming import ProgressSink
from reason_search.services.structured_generation import (
    StructuredGenerationService,
    StructuredGenerator,
)
from reason_search.tools.search_provider import SearchProvider, SearchProviderFacade


class ReasonedResearchOrchestrator:
    """Orchestrates one reasoned research invocation.

    Flow:
      1. Generate a research plan for the topic
      2. Expand it into search and analysis steps
      3. Run every search step, then every analysis step, in plan order
      4. Review the results for limitations and knowledge gaps
      5. At advanced depth with gaps: run follow-up searches, then synthesize

    Every transition is reported to the progress sink. The last event of a
    successful run is always `research-progress` with `isComplete`.
    """

    def __init__(
        self,
        provider: SearchProvider | None = None,
        generator: StructuredGenerationService | None = None,
        *,
        model: str | None = None,
        session_id: str | None = None,
    ):
        self.model = model or get_model()
        self.session_id = session_id or str(uuid4())
        self.provider = provider or SearchProviderFacade()
        self.generator = generator or StructuredGenerator(model=self.model)
        self.planner = PlanBuilder(self.generator)
        self.engine = ExecutionEngine(self.provider, self.generator, session_id=self.session_id)
        self.gap_controller = GapFillController(
            self.generator, self.engine, session_id=self.session_id
        )

    async def research(
        self,
        topic: str,
        depth: ResearchDepth | str,
        sink: ProgressSink,
        *,
        current_date: str | None = None,
    ) -> ResearchOutcome:
        topic = (topic or "").strip()
        if not topic:
            raise ValueError("Research topic must not be empty")
        depth = ResearchDepth(depth)
        t0 = time.monotonic()
        log_service.log_event(
            event_type="research_started",
            message="Reasoned research started",
            session_id=self.session_id,
            topic=topic[:100],
            depth=depth.value,
        )

        sink.emit(streaming.plan_started())
        plan = await self.planner.build_plan(topic, current_date)
        steps = expand_plan(plan)
        sink.emit(streaming.plan_completed(plan, steps.total_steps))
        log_service.log_research_step(
            self.session_id, streaming.PLAN_EVENT_ID, "completed", {"steps": steps.step_ids()}
        )

        ledger, findings = await self.engine.run(steps, depth, sink)

        outcome = await self.gap_controller.run(
            ledger, findings, depth, sink, completed_steps=steps.total_steps
        )

        sink.emit(streaming.research_progress(outcome.completed_steps, outcome.total_steps))
        log_service.log_event(
            event_type="research_complete",
            message="Reasoned research complete",
            session_id=self.session_id,
            runtime_ms=int((time.monotonic() - t0) * 1000),
            records=len(ledger),
            items=ledger.item_count,
            follow_up_round=outcome.synthesis is not None,
        )
        return ResearchOutcome(
            plan=plan,
            results=list(ledger.records),
            synthesis=outcome.synthesis,
            analyses=findings,
            gap_report=outcome.report,
        )
