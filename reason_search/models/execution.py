from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from reason_search.models.research_plan import AnalysisDirective, SearchDirective, SourceKind


@dataclass(frozen=True, slots=True)
class SearchStep:
    id: str
    source_type: SourceKind
    directive: SearchDirective
    follow_up: bool = False


@dataclass(frozen=True, slots=True)
class AnalysisStep:
    id: str
    directive: AnalysisDirective


@dataclass(frozen=True, slots=True)
class ExpandedSteps:
    search_steps: tuple[SearchStep, ...] = ()
    analysis_steps: tuple[AnalysisStep, ...] = ()

    @property
    def total_steps(self) -> int:
        return len(self.search_steps) + len(self.analysis_steps)

    def step_ids(self) -> list[str]:
        return [s.id for s in self.search_steps] + [s.id for s in self.analysis_steps]


@dataclass(frozen=True, slots=True)
class ResultItem:
    source: SourceKind
    title: str
    url: str
    content: str
    tweet_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "source": self.source.value,
            "title": self.title,
            "url": self.url,
            "content": self.content,
        }
        if self.tweet_id is not None:
            data["tweetId"] = self.tweet_id
        return data


@dataclass(slots=True)
class ResultRecord:
    source_type: SourceKind
    directive: SearchDirective
    items: list[ResultItem] = field(default_factory=list)

    def to_dict(self, *, content_chars: int | None = None) -> dict[str, Any]:
        items = [item.to_dict() for item in self.items]
        if content_chars is not None:
            for item in items:
                if len(item["content"]) > content_chars:
                    item["content"] = item["content"][:content_chars] + "..."
        return {
            "type": self.source_type.value,
            "query": self.directive.model_dump(mode="json"),
            "results": items,
        }


@dataclass(slots=True)
class ResultsLedger:
    """Append-only record of every executed search step in one invocation."""

    records: list[ResultRecord] = field(default_factory=list)

    def append(self, record: ResultRecord) -> None:
        self.records.append(record)

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self):
        return iter(self.records)

    @property
    def item_count(self) -> int:
        return sum(len(record.items) for record in self.records)

    def to_list(self, *, content_chars: int | None = None) -> list[dict[str, Any]]:
        return [record.to_dict(content_chars=content_chars) for record in self.records]

    def serialize(self, *, content_chars: int | None = None) -> str:
        return json.dumps(self.to_list(content_chars=content_chars), ensure_ascii=False)
