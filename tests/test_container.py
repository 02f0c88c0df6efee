"""Tests for container wiring."""

import asyncio

from bulk_image_generator.containers import build_container
from bulk_image_generator.domain.credentials import Provider
from bulk_image_generator.services.storage import InMemoryKeyValueStore


def test_build_container_creates_services(settings) -> None:
    container = build_container(settings)

    assert isinstance(container.store, InMemoryKeyValueStore)
    assert set(container.gateway.bindings) == {Provider.GEMINI, Provider.OPENAI}
    assert container.orchestrator.cooldown_seconds == 0
    assert container.credential_service.list_credentials() == []
    asyncio.run(container.close_resources())
