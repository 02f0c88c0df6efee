"""Domain models for provider credentials."""

import hashlib
from enum import Enum

from pydantic import BaseModel, Field


class Provider(str, Enum):
    """Supported image-generation backends."""

    GEMINI = "gemini"
    OPENAI = "openai"


class CredentialStatus(str, Enum):
    """Rotation status of a credential."""

    ACTIVE = "active"
    DEGRADED = "degraded"


class Credential(BaseModel):
    """API key owned by the user, identified by its secret value."""

    secret: str = Field(min_length=1)
    provider: Provider = Provider.GEMINI
    status: CredentialStatus = CredentialStatus.ACTIVE

    @property
    def is_active(self) -> bool:
        return self.status is CredentialStatus.ACTIVE

    @property
    def fingerprint(self) -> str:
        """Stable non-secret identifier used to address the credential."""
        return hashlib.sha256(self.secret.encode("utf-8")).hexdigest()[:12]

    @property
    def masked(self) -> str:
        return mask_secret(self.secret)


def mask_secret(secret: str) -> str:
    """Return a display label exposing only the last six characters."""
    return f"...{secret[-6:]}"
