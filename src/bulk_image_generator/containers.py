"""Dependency container wiring for the application."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from bulk_image_generator.adapters.gemini_image_client import GeminiImageClient
from bulk_image_generator.adapters.openai_image_client import OpenAIImageClient
from bulk_image_generator.adapters.supabase_kv_store import SupabaseKeyValueStore
from bulk_image_generator.config import Settings
from bulk_image_generator.domain.credentials import Provider
from bulk_image_generator.services.credentials import CredentialService
from bulk_image_generator.services.failures import (
    classify_gemini_error,
    classify_openai_error,
)
from bulk_image_generator.services.gateway import ProviderBinding, ProviderGateway
from bulk_image_generator.services.history import SessionRecorder
from bulk_image_generator.services.orchestrator import BulkGenerationOrchestrator
from bulk_image_generator.services.runs import RunManager
from bulk_image_generator.services.storage import InMemoryKeyValueStore, KeyValueStore

_logger = logging.getLogger(__name__)


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    store: KeyValueStore
    credential_service: CredentialService
    session_recorder: SessionRecorder
    gateway: ProviderGateway
    orchestrator: BulkGenerationOrchestrator
    run_manager: RunManager
    close_resources: Callable[[], Awaitable[None]]


def build_store(settings: Settings) -> KeyValueStore:
    """Use Supabase when configured, otherwise a process-local store."""
    if settings.uses_supabase:
        client = create_client(
            str(settings.supabase_url), str(settings.supabase_service_key)
        )
        return SupabaseKeyValueStore(client, table_name=settings.supabase_table)
    _logger.warning("Supabase is not configured; storing data in memory")
    return InMemoryKeyValueStore()


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    store = build_store(resolved_settings)
    credential_service = CredentialService(
        store=store, storage_key=resolved_settings.credentials_storage_key
    )
    credential_service.load()
    session_recorder = SessionRecorder(
        store=store, storage_key=resolved_settings.history_storage_key
    )
    session_recorder.load()
    gemini_client = GeminiImageClient(
        model=resolved_settings.gemini_model,
        aspect_ratio=resolved_settings.image_aspect_ratio,
    )
    openai_client = OpenAIImageClient(
        model=resolved_settings.openai_model,
        size=resolved_settings.openai_image_size,
    )
    gateway = ProviderGateway(
        bindings={
            Provider.GEMINI: ProviderBinding(gemini_client, classify_gemini_error),
            Provider.OPENAI: ProviderBinding(openai_client, classify_openai_error),
        }
    )
    orchestrator = BulkGenerationOrchestrator(
        credentials=credential_service,
        gateway=gateway,
        recorder=session_recorder,
        cooldown_seconds=resolved_settings.cooldown_seconds,
    )
    run_manager = RunManager(orchestrator)

    async def close_resources() -> None:
        await run_manager.close()
        await gemini_client.close()
        await openai_client.close()

    return AppContainer(
        settings=resolved_settings,
        store=store,
        credential_service=credential_service,
        session_recorder=session_recorder,
        gateway=gateway,
        orchestrator=orchestrator,
        run_manager=run_manager,
        close_resources=close_resources,
    )
