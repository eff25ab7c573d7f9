"""Reason Search - reasoned multi-source research

Simple CLI for running one research invocation.

Usage: python main.py --topic "grid-scale storage" --depth advanced
"""

import argparse
import asyncio
import sys

from reason_search.agents.orchestrator import ReasonedResearchOrchestrator
from reason_search.errors import ResearchError
from reason_search.models.events import ProgressEvent
from reason_search.models.research_plan import ResearchDepth


class ConsoleSink:
    """Prints progress events as they are emitted."""

    def emit(self, event: ProgressEvent) -> None:
        data = event.payload
        status = event.status.value

        if event.id == "research-plan" and status == "completed":
            plan = data.get("plan", {})
            print(f"\n[*] Research Plan ({data.get('totalSteps')} steps):")
            for i, directive in enumerate(plan.get("search_queries", []), 1):
                print(f"  {i}. [{directive.get('source')}] {directive.get('query', '')[:80]}")
        elif event.id == "research-progress":
            print(f"\n[*] {event.message} ({data.get('completedSteps')}/{data.get('totalSteps')} steps)")
        elif status == "running":
            print(f"[~] {event.title}")
        elif status == "completed":
            print(f"  [+] {event.message}")
        else:
            print(f"  [!] {event.title}: {event.message}")


async def run_research(topic: str, depth: str, model: str | None = None) -> int:
    """Run research on the given topic."""
    print(f"Research topic: {topic} (depth: {depth})")
    print("-" * 50)

    orchestrator = ReasonedResearchOrchestrator(model=model)
    try:
        outcome = await orchestrator.research(topic, depth, ConsoleSink())
    except ResearchError as e:
        print(f"\n[!] Error: {e}")
        return 1

    print(f"   Result sets: {len(outcome.results)}")
    if outcome.synthesis is None:
        return 0

    print(f"\n{'=' * 50}")
    print("SYNTHESIS:")
    print(f"{'=' * 50}")
    for finding in outcome.synthesis.key_findings:
        print(f"- {finding.finding} (confidence {finding.confidence:.2f})")
    if outcome.synthesis.remaining_uncertainties:
        print("\nRemaining uncertainties:")
        for uncertainty in outcome.synthesis.remaining_uncertainties:
            print(f"- {uncertainty}")
    return 0


def main():
    parser = argparse.ArgumentParser(description="Reason Search research tool")
    parser.add_argument("--topic", "-t", required=True, help="Topic or question to research")
    parser.add_argument(
        "--depth",
        "-d",
        choices=[d.value for d in ResearchDepth],
        default=ResearchDepth.BASIC.value,
        help="Search depth level",
    )
    parser.add_argument("--model", "-m", help="Model to use (default: from config)")

    args = parser.parse_args()

    sys.exit(asyncio.run(run_research(args.topic, args.depth, args.model)))


if __name__ == "__main__":
    main()
