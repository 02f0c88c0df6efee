"""Uniform entry point to the image-generation providers."""

import logging
from dataclasses import dataclass, field
from typing import Protocol

from bulk_image_generator.domain.credentials import Credential, Provider
from bulk_image_generator.domain.errors import CredentialOrTransportFailure
from bulk_image_generator.services.failures import Classifier, classify_failure

MAX_IMAGES_PER_PROMPT = 4

_logger = logging.getLogger(__name__)


class ImageClient(Protocol):
    """Interface for a provider's image API."""

    async def generate(self, prompt: str, api_key: str, image_count: int) -> list[str]:
        """Return base64-encoded images for a prompt."""


@dataclass(frozen=True)
class ProviderBinding:
    """A provider client together with its error classifier."""

    client: ImageClient
    classify: Classifier = classify_failure


@dataclass
class ProviderGateway:
    """Routes calls by credential provider and classifies their failures."""

    bindings: dict[Provider, ProviderBinding] = field(default_factory=dict)

    async def generate(
        self, prompt: str, credential: Credential, image_count: int
    ) -> list[str]:
        """Generate images or raise a GenerationFailure subclass."""
        binding = self.bindings.get(credential.provider)
        if binding is None:
            raise CredentialOrTransportFailure(
                f"No client configured for provider {credential.provider.value}"
            )
        try:
            images = await binding.client.generate(
                prompt, credential.secret, image_count
            )
        except Exception as exc:
            failure = binding.classify(exc)
            _logger.info(
                "Provider %s failed for credential %s: %s (%s)",
                credential.provider.value,
                credential.masked,
                failure.message,
                failure.kind.value,
            )
            raise failure from exc
        return _normalize_images(images, image_count)


def _normalize_images(images: object, image_count: int) -> list[str]:
    """Keep non-empty base64 strings, capped at the requested count."""
    if not isinstance(images, list):
        raise CredentialOrTransportFailure("Provider returned a malformed response")
    payloads = [image for image in images if isinstance(image, str) and image]
    if not payloads:
        raise CredentialOrTransportFailure("Provider returned no images")
    return payloads[:image_count]
