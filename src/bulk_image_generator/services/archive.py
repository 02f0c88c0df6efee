"""ZIP export of generated images."""

import base64
import io
import re
import zipfile

from bulk_image_generator.domain.errors import EmptyArchiveError
from bulk_image_generator.domain.generation import GenerationOutcome, HistorySession

_SLUG_LENGTH = 20
_NON_ALPHANUMERIC = re.compile(r"[^a-zA-Z0-9]")


def image_file_name(prompt_number: int, prompt: str, image_number: int) -> str:
    """Name an image after its prompt position and a prompt slug."""
    slug = _NON_ALPHANUMERIC.sub("_", prompt[:_SLUG_LENGTH])
    return f"prompt-{prompt_number}-{slug}-{image_number}.jpg"


def build_archive(results: list[GenerationOutcome]) -> bytes:
    """Pack every image of the given outcomes into an in-memory ZIP."""
    buffer = io.BytesIO()
    written = 0
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for result_index, result in enumerate(results, start=1):
            for image_index, image in enumerate(result.images, start=1):
                name = image_file_name(result_index, result.prompt, image_index)
                archive.writestr(name, base64.b64decode(image))
                written += 1
    if not written:
        raise EmptyArchiveError("This history item contains no images to download.")
    return buffer.getvalue()


def build_session_archive(session: HistorySession) -> bytes:
    return build_archive(session.results)


def archive_file_name(session: HistorySession) -> str:
    safe_id = _NON_ALPHANUMERIC.sub("-", session.id)
    return f"bulk-image-history-{safe_id}.zip"
