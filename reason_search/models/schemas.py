from __future__ import annotations

from pydantic import BaseModel, Field

from reason_search.models.research_plan import ResearchDepth


# --- Requests ---


class ReasonSearchRequest(BaseModel):
    topic: str = Field(min_length=1)
    depth: ResearchDepth = ResearchDepth.BASIC
    model: str | None = None


# --- Responses ---


class HealthResponse(BaseModel):
    status: str
    service: str
