"""OpenAI Images API client."""

from collections.abc import Callable
from dataclasses import dataclass, field

from openai import AsyncOpenAI

from bulk_image_generator.services.gateway import ImageClient


def _default_client_factory(api_key: str) -> AsyncOpenAI:
    return AsyncOpenAI(api_key=api_key, max_retries=0)


@dataclass
class OpenAIImageClient(ImageClient):
    """Image client backed by the OpenAI Images API.

    DALL-E 3 accepts a single image per request, so every call yields one
    image regardless of the requested count.
    """

    model: str = "dall-e-3"
    size: str = "1024x1024"
    client_factory: Callable[[str], AsyncOpenAI] = _default_client_factory
    _clients: dict[str, AsyncOpenAI] = field(default_factory=dict, repr=False)

    async def generate(self, prompt: str, api_key: str, image_count: int) -> list[str]:
        """Call the Images API and return base64 payloads."""
        client = self._client_for(api_key)
        response = await client.images.generate(
            model=self.model,
            prompt=prompt,
            n=1,
            size=self.size,
            response_format="b64_json",
        )
        return [item.b64_json for item in response.data or [] if item.b64_json]

    async def close(self) -> None:
        """Close every cached SDK client."""
        for client in self._clients.values():
            await client.close()
        self._clients.clear()

    def _client_for(self, api_key: str) -> AsyncOpenAI:
        client = self._clients.get(api_key)
        if client is None:
            client = self.client_factory(api_key)
            self._clients[api_key] = client
        return client
