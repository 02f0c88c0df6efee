"""ASGI entrypoint for the bulk image generator API."""

from bulk_image_generator.api.app import create_app
from bulk_image_generator.containers import build_container

app = create_app(build_container())
