"""Session recorder that journals run outcomes into persisted history."""

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from pydantic import TypeAdapter, ValidationError

from bulk_image_generator.domain.generation import GenerationOutcome, HistorySession
from bulk_image_generator.services.storage import KeyValueStore

_logger = logging.getLogger(__name__)

_SESSION_LIST = TypeAdapter(list[HistorySession])
_DISPLAY_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass
class SessionRecorder:
    """Newest-first history of runs, mirrored to a key-value store.

    The in-memory list is authoritative; storage failures are logged and
    never interrupt a run.
    """

    store: KeyValueStore
    storage_key: str
    sessions: list[HistorySession] = field(default_factory=list)

    def load(self) -> list[HistorySession]:
        """Replace in-memory history with the stored copy."""
        self.sessions = _load_sessions(self.store, self.storage_key)
        return self.load_all()

    def load_all(self) -> list[HistorySession]:
        """Return all sessions, newest first."""
        return list(self.sessions)

    def get(self, session_id: str) -> HistorySession | None:
        for session in self.sessions:
            if session.id == session_id:
                return session
        return None

    def new_session_id(self, now: datetime | None = None) -> str:
        """Return a unique identifier derived from the current time."""
        moment = now or datetime.now(tz=UTC)
        existing = {session.id for session in self.sessions}
        session_id = moment.isoformat(timespec="microseconds")
        while session_id in existing:
            moment += timedelta(microseconds=1)
            session_id = moment.isoformat(timespec="microseconds")
        return session_id

    def upsert(
        self, session_id: str, outcomes: list[GenerationOutcome]
    ) -> HistorySession:
        """Create the session at the head or overwrite its outcomes in place."""
        results = [outcome.model_copy() for outcome in outcomes]
        session = self.get(session_id)
        if session is None:
            session = HistorySession(
                id=session_id, date=_display_date(session_id), results=results
            )
            self.sessions.insert(0, session)
        else:
            session.results = results
        self._save()
        return session

    def delete(self, session_id: str) -> bool:
        before = len(self.sessions)
        self.sessions = [s for s in self.sessions if s.id != session_id]
        if len(self.sessions) == before:
            return False
        self._save()
        return True

    def clear(self) -> None:
        self.sessions = []
        try:
            self.store.remove(self.storage_key)
        except Exception:
            _logger.exception("Failed to clear history")

    def _save(self) -> None:
        payload = _SESSION_LIST.dump_json(self.sessions).decode("utf-8")
        try:
            self.store.set(self.storage_key, payload)
        except Exception:
            _logger.exception("Failed to persist history")


def _display_date(session_id: str) -> str:
    """Human-readable local timestamp for a time-derived session id."""
    try:
        moment = datetime.fromisoformat(session_id)
    except ValueError:
        moment = datetime.now(tz=UTC)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment.astimezone().strftime(_DISPLAY_FORMAT)


def _load_sessions(store: KeyValueStore, key: str) -> list[HistorySession]:
    """Read stored history, falling back to an empty list."""
    try:
        raw = store.get(key)
    except Exception:
        _logger.exception("Failed to load history")
        return []
    if not raw:
        return []
    try:
        return _SESSION_LIST.validate_json(raw)
    except ValidationError:
        _logger.warning("Stored history is malformed; starting empty")
        return []
