"""Tests for the prompt catalog."""
import json

import pytest

from reason_search.services import prompt_store


@pytest.fixture
def catalog(tmp_path, monkeypatch):
    path = tmp_path / "prompts.json"
    path.write_text(
        json.dumps(
            {
                "demo": {
                    "single": "Research $topic.",
                    "lines": ["Line one about $topic.", "Line two."],
                    "nested": {"deep": 1},
                }
            }
        ),
        encoding="utf-8",
    )
    monkeypatch.setattr(prompt_store, "PROMPTS_PATH", path)
    prompt_store.clear_prompt_cache()
    yield path
    prompt_store.clear_prompt_cache()


def test_render_prompt_substitutes_values(catalog):
    assert prompt_store.render_prompt("demo.single", topic="batteries") == "Research batteries."


def test_list_entries_are_joined_with_newlines(catalog):
    rendered = prompt_store.render_prompt("demo.lines", topic="grids")

    assert rendered == "Line one about grids.\nLine two."


def test_unknown_key_raises(catalog):
    with pytest.raises(KeyError, match="Prompt key not found"):
        prompt_store.render_prompt("demo.missing")


def test_non_string_entry_raises(catalog):
    with pytest.raises(TypeError):
        prompt_store.render_prompt("demo.nested")


def test_missing_value_raises(catalog):
    with pytest.raises(KeyError, match="Missing template value 'topic'"):
        prompt_store.render_prompt("demo.single")


def test_render_context_uses_template_values(catalog):
    class Context:
        def template_values(self):
            return {"topic": "solar"}

    assert prompt_store.render_context("demo.single", Context()) == "Research solar."


def test_shipped_catalog_has_every_prompt():
    prompt_store.clear_prompt_cache()
    keys = [
        "structured.system",
        "structured.retry_hint",
        "planner.plan",
        "analysis.step",
        "gap_review.review",
        "gap_review.synthesis",
    ]
    for key in keys:
        assert prompt_store._resolve_prompt_entry(key)
