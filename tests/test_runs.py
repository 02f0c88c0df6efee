"""Tests for background run management."""

import asyncio

import pytest

from bulk_image_generator.domain.errors import NoPromptsError, RunInProgressError
from bulk_image_generator.domain.generation import GenerationOutcome
from bulk_image_generator.services.orchestrator import RunState
from bulk_image_generator.services.runs import RunManager
from tests.conftest import FakeImageClient, make_credential_service, make_orchestrator


class ExplodingRecorder:
    def new_session_id(self) -> str:
        return "s-1"

    def upsert(self, session_id: str, outcomes: list[GenerationOutcome]) -> None:
        raise RuntimeError("disk full")


def test_run_completes_in_background(orchestrator, session_recorder) -> None:
    manager = RunManager(orchestrator)

    async def scenario():
        snapshot = manager.start(["cat", "", "dog"], 2)
        assert manager.is_running
        return await manager.wait()

    snapshot = asyncio.run(scenario())

    assert snapshot is not None
    assert snapshot.state is RunState.COMPLETED
    assert snapshot.total_prompts == 2
    assert [o.prompt for o in snapshot.outcomes] == ["cat", "dog"]
    assert snapshot.messages[-1] == "All prompts processed."
    assert session_recorder.get(snapshot.session_id) is not None
    assert not manager.is_running


def test_cancel_stops_active_run(orchestrator) -> None:
    manager = RunManager(orchestrator)

    async def scenario():
        manager.start(["a", "b", "c"], 1)
        assert manager.cancel() is True
        return await manager.wait()

    snapshot = asyncio.run(scenario())

    assert snapshot is not None
    assert snapshot.state is RunState.CANCELLED
    assert snapshot.outcomes == []
    assert manager.cancel() is False


def test_only_one_run_at_a_time(orchestrator) -> None:
    manager = RunManager(orchestrator)

    async def scenario() -> None:
        manager.start(["a"], 1)
        with pytest.raises(RunInProgressError):
            manager.start(["b"], 1)
        await manager.close()

    asyncio.run(scenario())


def test_precondition_errors_leave_previous_snapshot(orchestrator) -> None:
    manager = RunManager(orchestrator)

    async def scenario() -> None:
        manager.start(["a"], 1)
        await manager.wait()
        with pytest.raises(NoPromptsError):
            manager.start(["   "], 1)

    asyncio.run(scenario())

    assert manager.current is not None
    assert [o.prompt for o in manager.current.outcomes] == ["a"]


def test_unexpected_errors_are_captured_on_snapshot() -> None:
    service = make_credential_service("gemini-key-000001")
    orchestrator = make_orchestrator(service, FakeImageClient())
    orchestrator.recorder = ExplodingRecorder()
    manager = RunManager(orchestrator)

    async def scenario():
        manager.start(["a"], 1)
        return await manager.wait()

    snapshot = asyncio.run(scenario())

    assert snapshot is not None
    assert snapshot.error == "disk full"
    assert snapshot.outcomes == []
    assert snapshot.state is not RunState.RUNNING
