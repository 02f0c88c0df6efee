"""Credential pool and its persistence."""

import logging
from dataclasses import dataclass, field

from pydantic import TypeAdapter, ValidationError

from bulk_image_generator.domain.credentials import (
    Credential,
    CredentialStatus,
    Provider,
    mask_secret,
)
from bulk_image_generator.services.storage import KeyValueStore

_logger = logging.getLogger(__name__)

_CREDENTIAL_LIST = TypeAdapter(list[Credential])


@dataclass
class CredentialPool:
    """Ordered credentials with activation status. Performs no I/O."""

    credentials: list[Credential] = field(default_factory=list)

    def active_credentials(self, provider: Provider | None = None) -> list[Credential]:
        """Return active members in pool order."""
        return [
            credential
            for credential in self.credentials
            if credential.is_active
            and (provider is None or credential.provider is provider)
        ]

    def get(self, secret: str) -> Credential | None:
        for credential in self.credentials:
            if credential.secret == secret:
                return credential
        return None

    def find_by_fingerprint(self, fingerprint: str) -> Credential | None:
        for credential in self.credentials:
            if credential.fingerprint == fingerprint:
                return credential
        return None

    def add(self, secret: str, provider: Provider) -> Credential | None:
        """Add a new active credential; returns None for blanks and duplicates."""
        cleaned = secret.strip()
        if not cleaned or self.get(cleaned) is not None:
            return None
        credential = Credential(secret=cleaned, provider=provider)
        self.credentials.append(credential)
        return credential

    def remove(self, secret: str) -> bool:
        before = len(self.credentials)
        self.credentials = [c for c in self.credentials if c.secret != secret]
        return len(self.credentials) != before

    def mark_degraded(self, secret: str) -> bool:
        """Transition active to degraded. Returns whether anything changed."""
        return self._set_status(secret, CredentialStatus.DEGRADED)

    def mark_active(self, secret: str) -> bool:
        """Transition degraded to active. Returns whether anything changed."""
        return self._set_status(secret, CredentialStatus.ACTIVE)

    def reset_all_degraded(self) -> int:
        """Reactivate every degraded member and return how many changed."""
        changed = 0
        for credential in self.credentials:
            if credential.status is CredentialStatus.DEGRADED:
                credential.status = CredentialStatus.ACTIVE
                changed += 1
        return changed

    def _set_status(self, secret: str, status: CredentialStatus) -> bool:
        credential = self.get(secret)
        if credential is None or credential.status is status:
            return False
        credential.status = status
        return True


@dataclass
class CredentialService:
    """Keeps the credential pool in sync with the key-value store."""

    store: KeyValueStore
    storage_key: str
    pool: CredentialPool = field(default_factory=CredentialPool)

    def load(self) -> CredentialPool:
        """Replace the pool with the stored credentials."""
        self.pool = CredentialPool(_load_credentials(self.store, self.storage_key))
        return self.pool

    def list_credentials(self) -> list[Credential]:
        return list(self.pool.credentials)

    def active_credentials(self, provider: Provider | None = None) -> list[Credential]:
        return self.pool.active_credentials(provider)

    def find_by_fingerprint(self, fingerprint: str) -> Credential | None:
        return self.pool.find_by_fingerprint(fingerprint)

    def add(self, secret: str, provider: Provider) -> Credential | None:
        credential = self.pool.add(secret, provider)
        if credential is not None:
            _logger.info("Added %s credential %s", provider.value, credential.masked)
            self._save()
        return credential

    def remove(self, secret: str) -> bool:
        removed = self.pool.remove(secret)
        if removed:
            self._save()
        return removed

    def mark_degraded(self, secret: str) -> None:
        if self.pool.mark_degraded(secret):
            _logger.warning("Credential %s marked degraded", mask_secret(secret))
            self._save()

    def mark_active(self, secret: str) -> None:
        if self.pool.mark_active(secret):
            self._save()

    def reset_all_degraded(self) -> int:
        changed = self.pool.reset_all_degraded()
        if changed:
            _logger.info("Reactivated %s degraded credentials", changed)
            self._save()
        return changed

    def _save(self) -> None:
        payload = _CREDENTIAL_LIST.dump_json(self.pool.credentials).decode("utf-8")
        try:
            self.store.set(self.storage_key, payload)
        except Exception:
            _logger.exception("Failed to persist credentials")


def _load_credentials(store: KeyValueStore, key: str) -> list[Credential]:
    """Read stored credentials, falling back to an empty list."""
    try:
        raw = store.get(key)
    except Exception:
        _logger.exception("Failed to load credentials")
        return []
    if not raw:
        return []
    try:
        credentials = _CREDENTIAL_LIST.validate_json(raw)
    except ValidationError:
        _logger.warning("Stored credentials are malformed; starting empty")
        return []
    unique: dict[str, Credential] = {}
    for credential in credentials:
        unique.setdefault(credential.secret, credential)
    return list(unique.values())
