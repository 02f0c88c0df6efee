"""Tests for ZIP export."""

import io
import zipfile

import pytest

from bulk_image_generator.domain.errors import EmptyArchiveError
from bulk_image_generator.domain.generation import GenerationOutcome, HistorySession
from bulk_image_generator.services.archive import (
    archive_file_name,
    build_archive,
    build_session_archive,
    image_file_name,
)
from tests.conftest import encoded


def test_image_file_name_slugs_first_twenty_characters() -> None:
    name = image_file_name(2, "A cat, wearing a hat! In space", 3)

    assert name == "prompt-2-A_cat__wearing_a_hat-3.jpg"


def test_archive_contains_every_image_with_decoded_bytes() -> None:
    results = [
        GenerationOutcome(prompt="cat", images=[encoded("c1"), encoded("c2")]),
        GenerationOutcome(prompt="broken", error="All keys failed"),
        GenerationOutcome(prompt="dog", images=[encoded("d1")]),
    ]

    content = build_archive(results)

    with zipfile.ZipFile(io.BytesIO(content)) as archive:
        assert sorted(archive.namelist()) == [
            "prompt-1-cat-1.jpg",
            "prompt-1-cat-2.jpg",
            "prompt-3-dog-1.jpg",
        ]
        assert archive.read("prompt-3-dog-1.jpg") == b"d1"


def test_session_without_images_cannot_be_exported() -> None:
    session = HistorySession(
        id="2024-05-01T12:30:00.000000+00:00",
        date="2024-05-01 12:30:00",
        results=[GenerationOutcome(prompt="cat", error="blocked")],
    )

    with pytest.raises(EmptyArchiveError):
        build_session_archive(session)
    assert archive_file_name(session) == (
        "bulk-image-history-2024-05-01T12-30-00-000000-00-00.zip"
    )
