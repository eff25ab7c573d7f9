"""Schema-constrained generation on top of the chat client."""
from __future__ import annotations

import json
import time
from typing import Any, Protocol, TypeVar

from pydantic import BaseModel, ValidationError

from reason_search.config import settings
from reason_search.errors import GenerationError
from reason_search.llm_client import client as llm_client, get_model
from reason_search.services import logger as log_service
from reason_search.services.prompt_store import render_prompt

ModelT = TypeVar("ModelT", bound=BaseModel)


class StructuredGenerationService(Protocol):
    async def generate(
        self,
        prompt: str,
        schema: type[ModelT],
        *,
        caller: str = "structured",
        temperature: float | None = None,
        model: str | None = None,
    ) -> ModelT: ...


def extract_response_text(response: Any) -> str:
    blocks = getattr(response, "content", None) or []
    text_parts: list[str] = []
    for block in blocks:
        btype = getattr(block, "type", None)
        btext = getattr(block, "text", None)
        is_text_like_type = btype in (None, "text") or not isinstance(btype, str)
        if is_text_like_type and isinstance(btext, str) and btext.strip():
            text_parts.append(btext)
    return "\n".join(text_parts).strip()


def extract_json_object(raw_text: str) -> dict[str, Any]:
    text = raw_text.strip()
    if text.startswith("```"):
        parts = text.split("```")
        if len(parts) >= 2:
            text = parts[1]
        if text.startswith("json"):
            text = text[4:]
        text = text.strip()
    start = text.find("{")
    end = text.rfind("}")
    if start < 0 or end <= start:
        raise json.JSONDecodeError("object not found", text, 0)
    parsed = json.loads(text[start : end + 1])
    if not isinstance(parsed, dict):
        raise json.JSONDecodeError("not an object", text, 0)
    return parsed


class StructuredGenerator:
    """Asks the model for JSON matching a pydantic schema, retrying on bad output."""

    def __init__(
        self,
        model: str | None = None,
        *,
        max_attempts: int | None = None,
        max_tokens: int | None = None,
    ):
        self.model = model or get_model()
        self.max_attempts = max(
            int(max_attempts if max_attempts is not None else settings.generation_max_attempts), 1
        )
        self.max_tokens = int(max_tokens or settings.generation_max_tokens)
        self.client = None

    async def generate(
        self,
        prompt: str,
        schema: type[ModelT],
        *,
        caller: str = "structured",
        temperature: float | None = None,
        model: str | None = None,
    ) -> ModelT:
        active_client = self.client or llm_client()
        used_model = model or self.model
        system = render_prompt(
            "structured.system",
            schema_json=json.dumps(schema.model_json_schema()),
        )
        messages: list[dict[str, Any]] = [{"role": "user", "content": prompt}]
        last_error: Exception | None = None

        for attempt in range(1, self.max_attempts + 1):
            t0 = time.monotonic()
            try:
                response = await active_client.messages.create(
                    model=used_model,
                    max_tokens=self.max_tokens,
                    system=system,
                    messages=messages,
                    temperature=temperature if temperature is not None else 0.0,
                    json_mode=True,
                )
            except Exception as e:
                last_error = e
                log_service.log_llm_call(
                    model=used_model,
                    caller=caller,
                    duration_ms=int((time.monotonic() - t0) * 1000),
                    status="error",
                    error=str(e),
                )
                continue

            usage = getattr(response, "usage", None)
            elapsed_ms = int((time.monotonic() - t0) * 1000)
            text = extract_response_text(response)
            try:
                value = schema.model_validate(extract_json_object(text))
            except (json.JSONDecodeError, ValidationError) as e:
                last_error = e
                log_service.log_llm_call(
                    model=used_model,
                    caller=caller,
                    input_tokens=getattr(usage, "input_tokens", 0) or 0,
                    output_tokens=getattr(usage, "output_tokens", 0) or 0,
                    duration_ms=elapsed_ms,
                    status="invalid",
                    error=f"attempt {attempt}: {e}"[:500],
                )
                messages = [
                    {"role": "user", "content": prompt},
                    {"role": "assistant", "content": text or "(empty)"},
                    {
                        "role": "user",
                        "content": render_prompt(
                            "structured.retry_hint",
                            error=(str(e).splitlines() or [type(e).__name__])[0][:200],
                        ),
                    },
                ]
                continue

            log_service.log_llm_call(
                model=used_model,
                caller=caller,
                input_tokens=getattr(usage, "input_tokens", 0) or 0,
                output_tokens=getattr(usage, "output_tokens", 0) or 0,
                duration_ms=elapsed_ms,
            )
            return value

        raise GenerationError(last_error or "no attempts made")
