"""Bulk generation orchestrator.

Prompts are processed strictly in order. For each prompt the orchestrator
walks the active credentials starting at a rotating index, degrading every
credential that fails for credential-scoped reasons, until one call succeeds,
the provider rejects the prompt, or the credentials run out.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from bulk_image_generator.domain.credentials import Credential, Provider
from bulk_image_generator.domain.errors import (
    ExhaustionFailure,
    GenerationFailure,
    InvalidImageCountError,
    NoActiveCredentialsError,
    NoPromptsError,
    PromptRejectionFailure,
    RateLimitFailure,
    RunInProgressError,
)
from bulk_image_generator.domain.generation import GenerationOutcome
from bulk_image_generator.services.gateway import MAX_IMAGES_PER_PROMPT

ALL_CREDENTIALS_RATE_LIMITED = "All available credentials are rate-limited."
ALL_CREDENTIALS_FAILED = "All active API keys failed or are rate limited."

_logger = logging.getLogger(__name__)


class RunState(str, Enum):
    """Lifecycle of a single orchestrator run."""

    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class CredentialSource(Protocol):
    """Credential pool operations the orchestrator relies on."""

    def active_credentials(self, provider: Provider | None = None) -> list[Credential]:
        """Return active credentials in pool order."""

    def mark_degraded(self, secret: str) -> None:
        """Exclude a credential from rotation."""


class ImageGateway(Protocol):
    """Provider gateway that raises classified failures."""

    async def generate(
        self, prompt: str, credential: Credential, image_count: int
    ) -> list[str]:
        """Return base64 images or raise a GenerationFailure."""


class OutcomeRecorder(Protocol):
    """History sink for partial run results."""

    def new_session_id(self) -> str:
        """Return a fresh session identifier."""

    def upsert(self, session_id: str, outcomes: list[GenerationOutcome]) -> object:
        """Create or overwrite the session's outcomes."""


class CancellationToken:
    """Cooperative stop flag observed between suspension points."""

    def __init__(self) -> None:
        self._cancelled = False
        self._event: asyncio.Event | None = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True
        if self._event is not None:
            self._event.set()

    async def sleep(self, seconds: float) -> None:
        """Wait up to ``seconds``, returning early once cancelled."""
        if self._cancelled or seconds <= 0:
            return
        if self._event is None:
            self._event = asyncio.Event()
        try:
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
        except TimeoutError:
            return


@dataclass
class RotationState:
    """Index of the credential that served the last successful prompt."""

    index: int = 0


@dataclass(frozen=True)
class PromptResolution:
    """Result of processing one prompt; ``outcome`` is None when cancelled."""

    outcome: GenerationOutcome | None
    next_index: int


@dataclass
class BulkGenerationOrchestrator:
    """Drives a prompt batch through the gateway with credential rotation."""

    credentials: CredentialSource
    gateway: ImageGateway
    recorder: OutcomeRecorder
    cooldown_seconds: float = 2.0
    rotation: RotationState = field(default_factory=RotationState)
    on_status: Callable[[str], None] | None = None
    state: RunState = RunState.IDLE
    _token: CancellationToken | None = field(default=None, repr=False)

    def run(  # noqa: PLR0913
        self,
        prompts: Sequence[str],
        image_count: int,
        *,
        provider: Provider | None = None,
        token: CancellationToken | None = None,
        session_id: str | None = None,
    ) -> AsyncIterator[GenerationOutcome]:
        """Validate the request and return the lazy outcome stream."""
        if self.state is RunState.RUNNING:
            raise RunInProgressError("A generation run is already in progress.")
        cleaned = [prompt.strip() for prompt in prompts if prompt.strip()]
        if not cleaned:
            raise NoPromptsError()
        if not 1 <= image_count <= MAX_IMAGES_PER_PROMPT:
            raise InvalidImageCountError(image_count, MAX_IMAGES_PER_PROMPT)
        if not self.credentials.active_credentials(provider):
            raise NoActiveCredentialsError()
        run_session_id = session_id or self.recorder.new_session_id()
        run_token = token or CancellationToken()
        self._token = run_token
        self.state = RunState.RUNNING
        return self._run(cleaned, image_count, provider, run_token, run_session_id)

    def cancel(self) -> None:
        """Request the current run to stop at the next checkpoint."""
        if self._token is not None:
            self._token.cancel()

    async def process_prompt(  # noqa: PLR0913
        self,
        prompt: str,
        image_count: int,
        *,
        start_index: int,
        token: CancellationToken,
        provider: Provider | None = None,
        label: str = "",
    ) -> PromptResolution:
        """Try credentials for one prompt until it resolves."""
        budget = len(self.credentials.active_credentials(provider))
        attempts = 0
        index = start_index
        while attempts < budget:
            if token.cancelled:
                return PromptResolution(None, index)
            active = self.credentials.active_credentials(provider)
            if not active:
                failure = ExhaustionFailure(ALL_CREDENTIALS_RATE_LIMITED)
                return PromptResolution(_failed(prompt, failure), index)
            index %= len(active)
            credential = active[index]
            self._emit(f"{label}Trying key {credential.masked}")
            try:
                images = await self.gateway.generate(prompt, credential, image_count)
            except PromptRejectionFailure as failure:
                if token.cancelled:
                    return PromptResolution(None, index)
                return PromptResolution(_failed(prompt, failure), index)
            except RateLimitFailure:
                self.credentials.mark_degraded(credential.secret)
                self._emit(
                    f"Key {credential.masked} rate limited. "
                    f"Cooling down for {self.cooldown_seconds:g}s..."
                )
                if not token.cancelled:
                    await token.sleep(self.cooldown_seconds)
            except GenerationFailure as failure:
                self.credentials.mark_degraded(credential.secret)
                self._emit(f"Key {credential.masked} failed. Trying next key.")
                _logger.warning(
                    "Credential %s failed: %s", credential.masked, failure.message
                )
            else:
                if token.cancelled:
                    return PromptResolution(None, index)
                self.rotation.index = index
                return PromptResolution(
                    GenerationOutcome(prompt=prompt, images=images), index
                )
            attempts += 1
            index += 1
        if token.cancelled:
            return PromptResolution(None, index)
        return PromptResolution(
            _failed(prompt, ExhaustionFailure(ALL_CREDENTIALS_FAILED)), index
        )

    async def _run(
        self,
        prompts: list[str],
        image_count: int,
        provider: Provider | None,
        token: CancellationToken,
        session_id: str,
    ) -> AsyncIterator[GenerationOutcome]:
        self.state = RunState.RUNNING
        outcomes: list[GenerationOutcome] = []
        index = self.rotation.index
        total = len(prompts)
        _logger.info(
            "Run %s started: prompts=%s images=%s", session_id, total, image_count
        )
        self._emit("Starting generation...")
        try:
            for position, prompt in enumerate(prompts, start=1):
                if token.cancelled:
                    break
                self._emit(f'Processing prompt {position} of {total}: "{prompt}"')
                resolution = await self.process_prompt(
                    prompt,
                    image_count,
                    start_index=index,
                    token=token,
                    provider=provider,
                    label=f"[Prompt {position}/{total}] ",
                )
                index = resolution.next_index
                outcome = resolution.outcome
                if outcome is None:
                    break
                outcomes.append(outcome)
                if outcome.should_persist:
                    self.recorder.upsert(session_id, list(outcomes))
                yield outcome
        finally:
            self.state = RunState.CANCELLED if token.cancelled else RunState.COMPLETED
            if self._token is token:
                self._token = None
            _logger.info(
                "Run %s %s: outcomes=%s", session_id, self.state.value, len(outcomes)
            )
        if self.state is RunState.CANCELLED:
            self._emit("Generation stopped by user.")
        else:
            self._emit("All prompts processed.")

    def _emit(self, message: str) -> None:
        if self.on_status is not None:
            self.on_status(message)


def parse_prompts(text: str) -> list[str]:
    """Split free text into one prompt per non-blank line."""
    return [line.strip() for line in text.splitlines() if line.strip()]


def _failed(prompt: str, failure: GenerationFailure) -> GenerationOutcome:
    return GenerationOutcome(
        prompt=prompt, images=[], error=failure.message, error_kind=failure.kind
    )
