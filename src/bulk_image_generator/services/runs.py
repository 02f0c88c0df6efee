"""Background execution of orchestrator runs."""

import asyncio
import logging
from collections import deque
from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass, field

from bulk_image_generator.domain.credentials import Provider
from bulk_image_generator.domain.errors import RunInProgressError
from bulk_image_generator.domain.generation import GenerationOutcome
from bulk_image_generator.services.orchestrator import (
    BulkGenerationOrchestrator,
    RunState,
)

_logger = logging.getLogger(__name__)


@dataclass
class RunSnapshot:
    """Live view of a run: advisory status messages plus outcomes so far."""

    session_id: str
    total_prompts: int
    image_count: int
    provider: Provider | None = None
    state: RunState = RunState.RUNNING
    messages: deque[str] = field(default_factory=lambda: deque(maxlen=200))
    outcomes: list[GenerationOutcome] = field(default_factory=list)
    error: str | None = None


@dataclass
class RunManager:
    """Runs at most one orchestrator batch at a time as an asyncio task."""

    orchestrator: BulkGenerationOrchestrator
    current: RunSnapshot | None = None
    _task: "asyncio.Task[None] | None" = field(default=None, repr=False)

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(
        self,
        prompts: Sequence[str],
        image_count: int,
        provider: Provider | None = None,
    ) -> RunSnapshot:
        """Validate and launch a run; must be called from a running loop."""
        if self.is_running:
            raise RunInProgressError("A generation run is already in progress.")
        session_id = self.orchestrator.recorder.new_session_id()
        snapshot = RunSnapshot(
            session_id=session_id,
            total_prompts=0,
            image_count=image_count,
            provider=provider,
        )
        self.orchestrator.on_status = snapshot.messages.append
        stream = self.orchestrator.run(
            prompts, image_count, provider=provider, session_id=session_id
        )
        snapshot.total_prompts = sum(1 for prompt in prompts if prompt.strip())
        self.current = snapshot
        self._task = asyncio.create_task(self._consume(stream, snapshot))
        return snapshot

    def cancel(self) -> bool:
        """Ask the active run to stop. Returns False when nothing is running."""
        if not self.is_running:
            return False
        self.orchestrator.cancel()
        return True

    async def wait(self) -> RunSnapshot | None:
        """Wait for the active run, if any, and return its final snapshot."""
        if self._task is not None:
            await self._task
        return self.current

    async def close(self) -> None:
        self.cancel()
        await self.wait()

    async def _consume(
        self, stream: AsyncIterator[GenerationOutcome], snapshot: RunSnapshot
    ) -> None:
        try:
            async for outcome in stream:
                snapshot.outcomes.append(outcome)
        except Exception as exc:
            _logger.exception("Run %s failed", snapshot.session_id)
            snapshot.error = str(exc) or exc.__class__.__name__
        finally:
            snapshot.state = self.orchestrator.state
