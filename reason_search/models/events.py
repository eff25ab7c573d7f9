from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

UPDATE_EVENT_NAME = "research_update"


class EventKind(str, Enum):
    PLAN = "plan"
    SEARCH_WEB = "search-web"
    SEARCH_ACADEMIC = "search-academic"
    SEARCH_SOCIAL = "search-social"
    ANALYSIS = "analysis"
    PROGRESS = "progress"


class EventStatus(str, Enum):
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class ProgressEvent:
    id: str
    kind: EventKind
    status: EventStatus
    title: str
    message: str
    overwrite: bool = False
    payload: dict[str, Any] = field(default_factory=dict)
    timestamp: int = field(default_factory=_now_ms)

    @property
    def is_terminal(self) -> bool:
        return self.kind == EventKind.PROGRESS and bool(self.payload.get("isComplete"))

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": UPDATE_EVENT_NAME,
            "data": {
                "id": self.id,
                "type": self.kind.value,
                "status": self.status.value,
                "title": self.title,
                "message": self.message,
                "timestamp": self.timestamp,
                "overwrite": self.overwrite,
                **self.payload,
            },
        }

    def format(self) -> str:
        return f"event: {UPDATE_EVENT_NAME}\ndata: {json.dumps(self.to_dict()['data'])}\n\n"
