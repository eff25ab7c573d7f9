"""Tests for the run-in-place CLI."""
import tomllib
from pathlib import Path
from unittest.mock import patch

import pytest

import main
from reason_search.agents.orchestrator import ReasonedResearchOrchestrator
from reason_search.errors import GenerationError
from reason_search.models.research_plan import ResearchPlan

ROOT = Path(__file__).resolve().parents[1]


def _orchestrator(provider, generator) -> ReasonedResearchOrchestrator:
    return ReasonedResearchOrchestrator(
        provider=provider, generator=generator, model="test/model", session_id="cli-test"
    )


@pytest.mark.asyncio
async def test_run_research_prints_progress(capsys, fake_provider, make_generator, plan_factory):
    orchestrator = _orchestrator(fake_provider, make_generator({ResearchPlan: plan_factory()}))

    with patch("main.ReasonedResearchOrchestrator", return_value=orchestrator):
        exit_code = await main.run_research("X", "basic")

    out = capsys.readouterr().out
    assert exit_code == 0
    assert "Research Plan (3 steps)" in out
    assert "Result sets: 2" in out


@pytest.mark.asyncio
async def test_run_research_reports_failure(capsys, fake_provider, make_generator):
    orchestrator = _orchestrator(
        fake_provider, make_generator({ResearchPlan: GenerationError("bad json")})
    )

    with patch("main.ReasonedResearchOrchestrator", return_value=orchestrator):
        exit_code = await main.run_research("X", "basic")

    assert exit_code == 1
    assert "[!] Error:" in capsys.readouterr().out


def test_cli_module_is_not_installed_as_top_level_package():
    config = tomllib.loads((ROOT / "pyproject.toml").read_text(encoding="utf-8"))

    assert "py-modules" not in config["tool"].get("setuptools", {})
    assert "scripts" not in config["project"]
    assert config["tool"]["setuptools"]["packages"]["find"]["include"] == ["reason_search*"]
