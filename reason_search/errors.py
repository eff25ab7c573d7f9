"""Error taxonomy for a reasoned research invocation."""
from __future__ import annotations


class ResearchError(Exception):
    """Base class for all research orchestration failures."""


class GenerationError(ResearchError):
    """The structured generation service could not produce a conforming value."""

    def __init__(self, cause: BaseException | str):
        self.cause = cause
        super().__init__(f"Structured generation failed: {cause}")


class PlanGenerationError(ResearchError):
    """No research plan could be produced. Terminal: no steps run."""

    def __init__(self, cause: BaseException | str):
        self.cause = cause
        super().__init__(f"Research plan generation failed: {cause}")


class ProviderError(ResearchError):
    """A search backend call failed (transport, vendor, timeout or credentials)."""

    def __init__(self, source: str, cause: BaseException | str):
        self.source = source
        self.cause = cause
        super().__init__(f"{source} search failed: {cause}")


class SearchStepError(ProviderError):
    """A provider failure attributed to one executed search step."""

    def __init__(self, step_id: str, source: str, cause: BaseException | str):
        self.step_id = step_id
        super().__init__(source, cause)
        self.args = (f"Search step {step_id} failed ({source}): {cause}",)


class MalformedResultError(ResearchError):
    """A single result item is missing a required identifier.

    Recovered locally by dropping the item; never surfaces to the caller.
    """

    def __init__(self, source: str, url: str, reason: str):
        self.source = source
        self.url = url
        self.reason = reason
        super().__init__(f"Malformed {source} result {url!r}: {reason}")
