from __future__ import annotations

from reason_search.models.execution import AnalysisStep, ExpandedSteps, SearchStep
from reason_search.models.findings import GapReport
from reason_search.models.research_plan import (
    SOURCE_EXPANSION,
    AnalysisDirective,
    ResearchPlan,
    SearchDirective,
    SourceKind,
)

SEARCH_ID_PREFIX = "search"
GAP_SEARCH_ID_PREFIX = "gap-search"
ANALYSIS_ID_PREFIX = "analysis"

GAP_QUERY_PRIORITY = 3
# Sources cycled through for every query after a gap's first.
GAP_SOURCE_ROTATION: tuple[SourceKind, ...] = (
    SourceKind.WEB,
    SourceKind.ACADEMIC,
    SourceKind.SOCIAL,
)


def expand_search_directives(
    directives: list[SearchDirective],
    *,
    id_prefix: str = SEARCH_ID_PREFIX,
    follow_up: bool = False,
) -> tuple[SearchStep, ...]:
    """Expand search directives into per-source steps.

    The ordinal in each id is the directive's index, so the steps of an
    `all` directive share it and differ only in the source segment.
    """
    steps: list[SearchStep] = []
    for ordinal, directive in enumerate(directives):
        for source in SOURCE_EXPANSION[directive.source]:
            steps.append(
                SearchStep(
                    id=f"{id_prefix}-{source.value}-{ordinal}",
                    source_type=source,
                    directive=directive,
                    follow_up=follow_up,
                )
            )
    return tuple(steps)


def expand_analysis_directives(directives: list[AnalysisDirective]) -> tuple[AnalysisStep, ...]:
    return tuple(
        AnalysisStep(id=f"{ANALYSIS_ID_PREFIX}-{ordinal}", directive=directive)
        for ordinal, directive in enumerate(directives)
    )


def expand_plan(plan: ResearchPlan) -> ExpandedSteps:
    """Deterministically expand a plan into its executable round-one steps."""
    return ExpandedSteps(
        search_steps=expand_search_directives(plan.search_queries),
        analysis_steps=expand_analysis_directives(plan.required_analyses),
    )


def gap_source_for(query_index: int) -> SourceKind:
    if query_index == 0:
        return SourceKind.ALL
    return GAP_SOURCE_ROTATION[query_index % len(GAP_SOURCE_ROTATION)]


def build_gap_directives(report: GapReport) -> list[SearchDirective]:
    """Turn every knowledge gap's follow-up queries into search directives."""
    directives: list[SearchDirective] = []
    for gap in report.knowledge_gaps:
        for index, query in enumerate(q for q in gap.additional_queries if q.strip()):
            directives.append(
                SearchDirective(
                    query=query.strip(),
                    rationale=gap.reason,
                    source=gap_source_for(index),
                    priority=GAP_QUERY_PRIORITY,
                )
            )
    return directives


def expand_gap_report(report: GapReport) -> ExpandedSteps:
    """Build the follow-up round's search steps (no analysis steps)."""
    return ExpandedSteps(
        search_steps=expand_search_directives(
            build_gap_directives(report),
            id_prefix=GAP_SEARCH_ID_PREFIX,
            follow_up=True,
        ),
    )
