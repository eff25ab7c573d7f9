from __future__ import annotations

import asyncio
import json

from fastapi import APIRouter, HTTPException
from sse_starlette.sse import EventSourceResponse

from reason_search.agents.orchestrator import ReasonedResearchOrchestrator
from reason_search.config import settings
from reason_search.errors import ResearchError
from reason_search.models.events import UPDATE_EVENT_NAME
from reason_search.models.schemas import ReasonSearchRequest
from reason_search.services import logger as log_service
from reason_search.services.streaming import QueueProgressSink

router = APIRouter(prefix="/api/research", tags=["research"])


def get_orchestrator(model: str | None = None) -> ReasonedResearchOrchestrator:
    return ReasonedResearchOrchestrator(model=model)


@router.post("/reason")
async def reason_search(request: ReasonSearchRequest):
    """Run a reasoned research invocation, streaming progress events over SSE."""
    if not request.topic.strip():
        raise HTTPException(status_code=422, detail="Topic must not be empty")

    orchestrator = get_orchestrator(request.model)
    sink = QueueProgressSink(maxsize=settings.progress_queue_size)

    async def run() -> dict:
        try:
            outcome = await orchestrator.research(request.topic, request.depth, sink)
            return outcome.to_dict()
        finally:
            sink.close()

    async def event_generator():
        task = asyncio.create_task(run())
        try:
            async for event in sink.events():
                yield {"event": UPDATE_EVENT_NAME, "data": json.dumps(event.to_dict()["data"])}

            try:
                result = await task
            except ResearchError as e:
                log_service.log_event(
                    event_type="research_failed",
                    message=str(e),
                    session_id=orchestrator.session_id,
                    error_type=type(e).__name__,
                )
                yield {
                    "event": "error",
                    "data": json.dumps({"message": str(e), "error_type": type(e).__name__}),
                }
                return
            yield {"event": "research_result", "data": json.dumps(result)}
        finally:
            if not task.done():
                task.cancel()

    return EventSourceResponse(event_generator())
