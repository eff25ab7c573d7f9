from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, Field, field_validator

from reason_search.models.execution import ResultRecord
from reason_search.models.research_plan import ResearchPlan, whole_number_in_range


class Finding(BaseModel):
    insight: str
    evidence: list[str] = []
    confidence: float = Field(ge=0, le=1)


class AnalysisFinding(BaseModel):
    """Output of one analysis step."""

    findings: list[Finding] = []
    implications: list[str] = []
    limitations: list[str] = []


class Limitation(BaseModel):
    type: str
    description: str
    severity: int = Field(ge=2, le=10)
    potential_solutions: list[str] = []

    @field_validator("severity", mode="before")
    @classmethod
    def _round_severity(cls, value: Any) -> int:
        return whole_number_in_range(value, 2, 10)

    @property
    def confidence(self) -> float:
        return round(1 - (self.severity - 2) / 8, 4)


class KnowledgeGap(BaseModel):
    topic: str
    reason: str
    additional_queries: list[str] = []


class FollowUp(BaseModel):
    action: str
    rationale: str
    priority: int = Field(ge=2, le=10)

    @field_validator("priority", mode="before")
    @classmethod
    def _round_priority(cls, value: Any) -> int:
        return whole_number_in_range(value, 2, 10)


class GapReport(BaseModel):
    """Limitations and knowledge gaps found by reviewing a round's results."""

    limitations: list[Limitation] = []
    knowledge_gaps: list[KnowledgeGap] = []
    recommended_followup: list[FollowUp] = []


class KeyFinding(BaseModel):
    finding: str
    confidence: float = Field(ge=0, le=1)
    supporting_evidence: list[str] = []


class Synthesis(BaseModel):
    """Cross-round summary, produced only when a follow-up round runs."""

    key_findings: list[KeyFinding] = []
    remaining_uncertainties: list[str] = []


@dataclass
class ResearchOutcome:
    plan: ResearchPlan
    results: list[ResultRecord] = field(default_factory=list)
    synthesis: Synthesis | None = None
    analyses: list[AnalysisFinding] = field(default_factory=list)
    gap_report: GapReport | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "plan": self.plan.model_dump(mode="json"),
            "results": [record.to_dict() for record in self.results],
            "synthesis": self.synthesis.model_dump(mode="json") if self.synthesis else None,
        }
