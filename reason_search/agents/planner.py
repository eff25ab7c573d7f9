from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any

from reason_search.config import settings
from reason_search.errors import GenerationError, PlanGenerationError
from reason_search.models.research_plan import MAX_PLAN_STEPS, ResearchPlan
from reason_search.services import logger as log_service
from reason_search.services.prompt_store import render_context
from reason_search.services.structured_generation import StructuredGenerationService


def format_current_date(today: date) -> str:
    """Render a date like "Monday, October 19, 2026"."""
    return f"{today.strftime('%A')}, {today.strftime('%B')} {today.day}, {today.year}"


@dataclass(frozen=True, slots=True)
class PlanPromptContext:
    topic: str
    current_date: str
    max_steps: int = MAX_PLAN_STEPS

    def template_values(self) -> dict[str, Any]:
        return {
            "topic": self.topic,
            "current_date": self.current_date,
            "max_steps": self.max_steps,
        }


class PlanBuilder:
    """Turns a topic into a typed research plan with one generation call."""

    def __init__(self, generator: StructuredGenerationService, *, model: str | None = None):
        self.generator = generator
        self.model = model or settings.planner_model.strip() or None

    async def build_plan(self, topic: str, current_date: str | None = None) -> ResearchPlan:
        context = PlanPromptContext(
            topic=topic.strip(),
            current_date=current_date or format_current_date(date.today()),
        )
        try:
            plan = await self.generator.generate(
                render_context("planner.plan", context),
                ResearchPlan,
                caller="orchestrator.plan",
                temperature=settings.plan_temperature,
                model=self.model,
            )
        except GenerationError as e:
            log_service.log_event(
                event_type="plan_failed",
                message="Research plan generation failed",
                error=str(e),
            )
            raise PlanGenerationError(e.cause) from e

        log_service.log_event(
            event_type="plan_created",
            message="Research plan created",
            search_directives=len(plan.search_queries),
            analysis_directives=len(plan.required_analyses),
        )
        return plan
