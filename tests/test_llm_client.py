"""Tests for the OpenRouter LLM client factory."""
import sys
import types
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from reason_search.llm_client import OpenRouterMessagesAdapter, get_client, get_model


class TestGetModel:
    def test_get_model_returns_default_when_no_override(self):
        with patch("reason_search.llm_client.settings") as mock_settings:
            mock_settings.openrouter_model = ""
            mock_settings.default_model = "openai/gpt-4o-mini"

            assert get_model() == "openai/gpt-4o-mini"

    def test_get_model_returns_openrouter_override(self):
        with patch("reason_search.llm_client.settings") as mock_settings:
            mock_settings.openrouter_model = "google/gemini-2.0-flash-001"
            mock_settings.default_model = "openai/gpt-4o-mini"

            assert get_model() == "google/gemini-2.0-flash-001"


class TestGetClient:
    def test_get_client_uses_openrouter(self):
        with patch("reason_search.llm_client.settings") as mock_settings:
            mock_settings.openrouter_api_key = "sk-or-valid-key"
            mock_settings.openrouter_base_url = ""

            openai_module = types.ModuleType("openai")
            mock_openai = MagicMock()
            openai_module.AsyncOpenAI = mock_openai

            with patch.dict(sys.modules, {"openai": openai_module}):
                get_client()

            mock_openai.assert_called_once_with(
                api_key="sk-or-valid-key",
                base_url="https://openrouter.ai/api/v1",
            )


def _openai_response(text, prompt_tokens=5, completion_tokens=3):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=text))],
        usage=SimpleNamespace(prompt_tokens=prompt_tokens, completion_tokens=completion_tokens),
    )


class TestOpenRouterAdapter:
    @pytest.mark.asyncio
    async def test_create_requests_json_mode(self):
        openai_client = MagicMock()
        openai_client.chat.completions.create = AsyncMock(return_value=_openai_response('{"a": 1}'))
        adapter = OpenRouterMessagesAdapter(openai_client)

        response = await adapter.create(
            model="openai/gpt-4o-mini",
            max_tokens=100,
            system="sys",
            messages=[{"role": "user", "content": "hi"}],
            temperature=0.5,
            json_mode=True,
        )

        kwargs = openai_client.chat.completions.create.await_args.kwargs
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["temperature"] == 0.5
        assert kwargs["messages"][0] == {"role": "system", "content": "sys"}
        assert response.content[0].text == '{"a": 1}'
        assert response.usage.input_tokens == 5
        assert response.usage.output_tokens == 3

    @pytest.mark.asyncio
    async def test_gpt5_models_get_default_temperature(self):
        openai_client = MagicMock()
        openai_client.chat.completions.create = AsyncMock(return_value=_openai_response("ok"))
        adapter = OpenRouterMessagesAdapter(openai_client)

        await adapter.create(
            model="openai/gpt-5-mini",
            max_tokens=10,
            system="sys",
            messages=[{"role": "user", "content": "hi"}],
        )

        kwargs = openai_client.chat.completions.create.await_args.kwargs
        assert kwargs["temperature"] == 1
        assert "response_format" not in kwargs

    def test_empty_response_has_no_content(self):
        mapped = OpenRouterMessagesAdapter._from_openai_response(_openai_response(None))

        assert mapped.content == []
