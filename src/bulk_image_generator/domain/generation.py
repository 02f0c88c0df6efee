"""Models for generation outcomes and history sessions."""

from enum import Enum

from pydantic import BaseModel, Field


class FailureKind(str, Enum):
    """Typed reason recorded on a failed outcome."""

    PROMPT_REJECTED = "prompt_rejected"
    RATE_LIMITED = "rate_limited"
    CREDENTIAL_OR_TRANSPORT = "credential_or_transport"
    EXHAUSTED = "exhausted"


class GenerationOutcome(BaseModel):
    """Terminal result for a single prompt."""

    prompt: str
    images: list[str] = Field(default_factory=list)
    error: str | None = None
    error_kind: FailureKind | None = None

    @property
    def should_persist(self) -> bool:
        """Outcomes with images or an error are flushed to history."""
        return bool(self.images) or self.error is not None


class HistorySession(BaseModel):
    """One batch run and the outcomes it produced, in prompt order."""

    id: str
    date: str
    results: list[GenerationOutcome] = Field(default_factory=list)

    @property
    def image_count(self) -> int:
        return sum(len(result.images) for result in self.results)
