"""Pydantic models for the HTTP API."""

from pydantic import BaseModel, Field

from bulk_image_generator.domain.credentials import (
    Credential,
    CredentialStatus,
    Provider,
)
from bulk_image_generator.domain.generation import GenerationOutcome, HistorySession
from bulk_image_generator.services.orchestrator import RunState, parse_prompts
from bulk_image_generator.services.runs import RunSnapshot


class CredentialCreate(BaseModel):
    """Request body for adding an API key."""

    secret: str
    provider: Provider = Provider.GEMINI


class CredentialView(BaseModel):
    """Credential as exposed over HTTP, without the secret."""

    fingerprint: str
    masked: str
    provider: Provider
    status: CredentialStatus

    @classmethod
    def from_credential(cls, credential: Credential) -> "CredentialView":
        return cls(
            fingerprint=credential.fingerprint,
            masked=credential.masked,
            provider=credential.provider,
            status=credential.status,
        )


class RunRequest(BaseModel):
    """Request body for starting a run.

    ``prompts`` accepts either a list or free text with one prompt per line.
    """

    prompts: list[str] | str
    image_count: int = 1
    provider: Provider | None = None

    def prompt_list(self) -> list[str]:
        if isinstance(self.prompts, str):
            return parse_prompts(self.prompts)
        return [prompt for prompt in self.prompts if prompt.strip()]


class RunView(BaseModel):
    """Live state of the current run."""

    session_id: str
    state: RunState
    total_prompts: int
    completed_prompts: int
    image_count: int
    provider: Provider | None = None
    messages: list[str] = Field(default_factory=list)
    outcomes: list[GenerationOutcome] = Field(default_factory=list)
    error: str | None = None

    @classmethod
    def from_snapshot(cls, snapshot: RunSnapshot) -> "RunView":
        return cls(
            session_id=snapshot.session_id,
            state=snapshot.state,
            total_prompts=snapshot.total_prompts,
            completed_prompts=len(snapshot.outcomes),
            image_count=snapshot.image_count,
            provider=snapshot.provider,
            messages=list(snapshot.messages),
            outcomes=list(snapshot.outcomes),
            error=snapshot.error,
        )


class HistorySummary(BaseModel):
    """Compact listing entry for a history session."""

    id: str
    date: str
    prompt_count: int
    image_count: int

    @classmethod
    def from_session(cls, session: HistorySession) -> "HistorySummary":
        return cls(
            id=session.id,
            date=session.date,
            prompt_count=len(session.results),
            image_count=session.image_count,
        )
