"""Google Imagen client built on the google-genai SDK."""

import base64
from collections.abc import Callable
from dataclasses import dataclass, field

from google import genai
from google.genai import types

from bulk_image_generator.services.gateway import ImageClient


def _default_client_factory(api_key: str) -> genai.Client:
    return genai.Client(api_key=api_key)


@dataclass
class GeminiImageClient(ImageClient):
    """Generates up to four images per call with an Imagen model."""

    model: str
    aspect_ratio: str = "1:1"
    output_mime_type: str = "image/jpeg"
    client_factory: Callable[[str], genai.Client] = _default_client_factory
    _clients: dict[str, genai.Client] = field(default_factory=dict, repr=False)

    async def generate(self, prompt: str, api_key: str, image_count: int) -> list[str]:
        """Call Imagen and return base64 payloads."""
        client = self._client_for(api_key)
        response = await client.aio.models.generate_images(
            model=self.model,
            prompt=prompt,
            config=types.GenerateImagesConfig(
                number_of_images=image_count,
                output_mime_type=self.output_mime_type,
                aspect_ratio=self.aspect_ratio,
                include_rai_reason=True,
            ),
        )
        generated = response.generated_images or []
        images = [
            base64.b64encode(item.image.image_bytes).decode("ascii")
            for item in generated
            if item.image is not None and item.image.image_bytes
        ]
        if images:
            return images
        reasons = [
            item.rai_filtered_reason for item in generated if item.rai_filtered_reason
        ]
        if reasons:
            raise ValueError(
                "Image generation blocked by safety filters: " + "; ".join(reasons)
            )
        raise RuntimeError("Gemini returned an empty response")

    async def close(self) -> None:
        """Close every cached SDK client."""
        for client in self._clients.values():
            await client.aio.aclose()
        self._clients.clear()

    def _client_for(self, api_key: str) -> genai.Client:
        client = self._clients.get(api_key)
        if client is None:
            client = self.client_factory(api_key)
            self._clients[api_key] = client
        return client
