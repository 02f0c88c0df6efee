"""Tests for the Supabase key-value store."""

from dataclasses import dataclass, field

from bulk_image_generator.adapters.supabase_kv_store import SupabaseKeyValueStore
from bulk_image_generator.domain.credentials import Provider
from bulk_image_generator.services.credentials import CredentialService


@dataclass
class FakeResponse:
    data: list[dict[str, object]] | None


@dataclass
class FakeTable:
    name: str
    response_queue: dict[str, list[list[dict[str, object]]]] = field(
        default_factory=lambda: {"select": [], "upsert": [], "delete": []}
    )
    last_payload: object | None = None
    last_filters: list[tuple[str, object]] = field(default_factory=list)
    actions: list[str] = field(default_factory=list)

    def queue(self, action: str, data: list[dict[str, object]]) -> None:
        self.response_queue[action].append(data)

    def select(self, *_args) -> "FakeTable":
        self._action = "select"
        return self

    def upsert(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "upsert"
        self.last_payload = payload
        return self

    def delete(self) -> "FakeTable":
        self._action = "delete"
        return self

    def eq(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((column, value))
        return self

    def limit(self, _count: int) -> "FakeTable":
        return self

    def execute(self) -> FakeResponse:
        action = getattr(self, "_action", "select")
        self.actions.append(action)
        queue = self.response_queue.get(action, [])
        data = queue.pop(0) if queue else []
        return FakeResponse(data=data)


@dataclass
class FakeSupabaseClient:
    tables: dict[str, FakeTable] = field(default_factory=dict)

    def table(self, name: str) -> FakeTable:
        if name not in self.tables:
            self.tables[name] = FakeTable(name=name)
        return self.tables[name]


def test_get_returns_stored_value_or_none() -> None:
    client = FakeSupabaseClient()
    table = client.table("kv_store")
    table.queue("select", [{"key": "k", "value": "v"}])

    store = SupabaseKeyValueStore(client)

    assert store.get("k") == "v"
    assert store.get("missing") is None
    assert table.last_filters == [("key", "k"), ("key", "missing")]


def test_set_upserts_row_and_remove_deletes_it() -> None:
    client = FakeSupabaseClient()
    table = client.table("app_kv")

    store = SupabaseKeyValueStore(client, table_name="app_kv")
    store.set("k", "v")

    assert isinstance(table.last_payload, dict)
    assert table.last_payload["key"] == "k"
    assert table.last_payload["value"] == "v"
    assert "updated_at" in table.last_payload

    store.remove("k")

    assert table.actions == ["upsert", "delete"]
    assert table.last_filters[-1] == ("key", "k")


def test_credential_service_persists_through_supabase() -> None:
    client = FakeSupabaseClient()
    service = CredentialService(
        store=SupabaseKeyValueStore(client), storage_key="api-keys"
    )

    service.add("gemini-key-000001", Provider.GEMINI)

    payload = client.table("kv_store").last_payload
    assert isinstance(payload, dict)
    assert payload["key"] == "api-keys"
    assert "gemini-key-000001" in str(payload["value"])
