"""Shared test fixtures."""

import base64
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass, field

import pytest

from bulk_image_generator.config import Settings
from bulk_image_generator.containers import AppContainer
from bulk_image_generator.domain.credentials import Provider
from bulk_image_generator.domain.generation import GenerationOutcome
from bulk_image_generator.services.credentials import CredentialService
from bulk_image_generator.services.failures import (
    classify_gemini_error,
    classify_openai_error,
)
from bulk_image_generator.services.gateway import (
    ImageClient,
    ProviderBinding,
    ProviderGateway,
)
from bulk_image_generator.services.history import SessionRecorder
from bulk_image_generator.services.orchestrator import BulkGenerationOrchestrator
from bulk_image_generator.services.runs import RunManager
from bulk_image_generator.services.storage import InMemoryKeyValueStore, KeyValueStore

CREDENTIALS_KEY = "test-credentials"
HISTORY_KEY = "test-history"


def encoded(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


@dataclass
class FakeImageClient(ImageClient):
    """Image client replaying scripted results per API key.

    Each script entry is either a list of images or an exception to raise.
    Keys without a remaining script return ``image_count`` encoded images.
    """

    scripts: dict[str, list[list[str] | Exception]] = field(default_factory=dict)
    calls: list[tuple[str, str, int]] = field(default_factory=list)
    on_call: Callable[[str, str], None] | None = None

    async def generate(self, prompt: str, api_key: str, image_count: int) -> list[str]:
        self.calls.append((prompt, api_key, image_count))
        if self.on_call is not None:
            self.on_call(prompt, api_key)
        script = self.scripts.get(api_key)
        if script:
            result = script.pop(0)
            if isinstance(result, Exception):
                raise result
            return result
        return [encoded(f"{api_key}:{prompt}:{index}") for index in range(image_count)]

    def keys_called(self) -> list[str]:
        return [api_key for _prompt, api_key, _count in self.calls]


@dataclass
class FailingKeyValueStore(KeyValueStore):
    """Store whose every operation fails, as when storage is unavailable."""

    def get(self, key: str) -> str | None:
        raise OSError("storage unavailable")

    def set(self, key: str, value: str) -> None:
        raise OSError("storage unavailable")

    def remove(self, key: str) -> None:
        raise OSError("storage unavailable")


def make_credential_service(
    *secrets: str,
    store: KeyValueStore | None = None,
    provider: Provider = Provider.GEMINI,
) -> CredentialService:
    service = CredentialService(
        store=store or InMemoryKeyValueStore(), storage_key=CREDENTIALS_KEY
    )
    for secret in secrets:
        service.add(secret, provider)
    return service


def make_gateway(
    gemini: ImageClient | None = None, openai: ImageClient | None = None
) -> ProviderGateway:
    return ProviderGateway(
        bindings={
            Provider.GEMINI: ProviderBinding(
                gemini or FakeImageClient(), classify_gemini_error
            ),
            Provider.OPENAI: ProviderBinding(
                openai or FakeImageClient(), classify_openai_error
            ),
        }
    )


def make_orchestrator(
    credential_service: CredentialService,
    client: ImageClient,
    recorder: SessionRecorder | None = None,
    cooldown_seconds: float = 0,
) -> BulkGenerationOrchestrator:
    return BulkGenerationOrchestrator(
        credentials=credential_service,
        gateway=make_gateway(gemini=client),
        recorder=recorder
        or SessionRecorder(store=InMemoryKeyValueStore(), storage_key=HISTORY_KEY),
        cooldown_seconds=cooldown_seconds,
    )


async def collect(stream: AsyncIterator[GenerationOutcome]) -> list[GenerationOutcome]:
    return [outcome async for outcome in stream]


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        supabase_url=None,
        supabase_service_key=None,
        access_token=None,
        cooldown_seconds=0,
        credentials_storage_key=CREDENTIALS_KEY,
        history_storage_key=HISTORY_KEY,
    )


@pytest.fixture
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def image_client() -> FakeImageClient:
    return FakeImageClient()


@pytest.fixture
def credential_service(store: InMemoryKeyValueStore) -> CredentialService:
    return make_credential_service(
        "gemini-key-000001", "gemini-key-000002", store=store
    )


@pytest.fixture
def session_recorder(store: InMemoryKeyValueStore) -> SessionRecorder:
    return SessionRecorder(store=store, storage_key=HISTORY_KEY)


@pytest.fixture
def orchestrator(
    credential_service: CredentialService,
    image_client: FakeImageClient,
    session_recorder: SessionRecorder,
) -> BulkGenerationOrchestrator:
    return make_orchestrator(credential_service, image_client, session_recorder)


@pytest.fixture
def container(
    settings: Settings,
    store: InMemoryKeyValueStore,
    credential_service: CredentialService,
    session_recorder: SessionRecorder,
    orchestrator: BulkGenerationOrchestrator,
) -> AppContainer:
    run_manager = RunManager(orchestrator)

    async def close_resources() -> None:
        await run_manager.close()

    return AppContainer(
        settings=settings,
        store=store,
        credential_service=credential_service,
        session_recorder=session_recorder,
        gateway=orchestrator.gateway,
        orchestrator=orchestrator,
        run_manager=run_manager,
        close_resources=close_resources,
    )
