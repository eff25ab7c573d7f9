from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

MAX_SEARCH_DIRECTIVES = 12
MAX_ANALYSIS_DIRECTIVES = 8
MAX_PLAN_STEPS = 20


class ResearchDepth(StrEnum):
    BASIC = "basic"
    ADVANCED = "advanced"


class SourceKind(StrEnum):
    WEB = "web"
    ACADEMIC = "academic"
    SOCIAL = "social"
    ALL = "all"


# Which concrete sources a directive of each kind searches, in emission order.
SOURCE_EXPANSION: dict[SourceKind, tuple[SourceKind, ...]] = {
    SourceKind.WEB: (SourceKind.WEB,),
    SourceKind.ACADEMIC: (SourceKind.ACADEMIC,),
    SourceKind.SOCIAL: (SourceKind.SOCIAL,),
    SourceKind.ALL: (SourceKind.WEB, SourceKind.ACADEMIC, SourceKind.SOCIAL),
}

_SOURCE_ALIASES = {"x": SourceKind.SOCIAL.value, "twitter": SourceKind.SOCIAL.value}


def whole_number_in_range(value: Any, low: int, high: int) -> int:
    try:
        number = round(float(value))
    except (TypeError, ValueError):
        return low
    return max(low, min(high, number))


class SearchDirective(BaseModel):
    """A planned search before expansion into per-source steps."""

    model_config = ConfigDict(frozen=True)

    query: str = Field(min_length=1)
    rationale: str = ""
    source: SourceKind = SourceKind.WEB
    priority: int = 3

    @field_validator("source", mode="before")
    @classmethod
    def _normalize_source(cls, value: Any) -> Any:
        if isinstance(value, str):
            lowered = value.strip().lower()
            return _SOURCE_ALIASES.get(lowered, lowered)
        return value

    @field_validator("priority", mode="before")
    @classmethod
    def _clamp_priority(cls, value: Any) -> int:
        return whole_number_in_range(value, 2, 4)


class AnalysisDirective(BaseModel):
    """A planned analysis over the accumulated results."""

    model_config = ConfigDict(frozen=True)

    type: str = Field(min_length=1)
    description: str = ""
    importance: int = 3

    @field_validator("importance", mode="before")
    @classmethod
    def _clamp_importance(cls, value: Any) -> int:
        return whole_number_in_range(value, 1, 5)


class ResearchPlan(BaseModel):
    """Immutable research plan produced by the planner."""

    model_config = ConfigDict(frozen=True)

    search_queries: list[SearchDirective] = Field(min_length=1)
    required_analyses: list[AnalysisDirective] = []

    @model_validator(mode="before")
    @classmethod
    def _enforce_budget(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        searches = list(data.get("search_queries") or [])[:MAX_SEARCH_DIRECTIVES]
        analyses = list(data.get("required_analyses") or [])[:MAX_ANALYSIS_DIRECTIVES]
        analyses = analyses[: max(MAX_PLAN_STEPS - len(searches), 0)]
        return {**data, "search_queries": searches, "required_analyses": analyses}

    @property
    def directive_count(self) -> int:
        return len(self.search_queries) + len(self.required_analyses)
