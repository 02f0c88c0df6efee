"""History browsing and export endpoints."""

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from bulk_image_generator.api.deps import require_access
from bulk_image_generator.api.models import HistorySummary
from bulk_image_generator.domain.errors import EmptyArchiveError
from bulk_image_generator.domain.generation import HistorySession
from bulk_image_generator.services.archive import (
    archive_file_name,
    build_session_archive,
)

if TYPE_CHECKING:
    from bulk_image_generator.containers import AppContainer

router = APIRouter(
    prefix="/history", tags=["history"], dependencies=[Depends(require_access)]
)


@router.get("")
async def list_history(request: Request) -> dict[str, list[HistorySummary]]:
    """Return recorded sessions, newest first."""
    container: AppContainer = request.app.state.container
    sessions = container.session_recorder.load_all()
    return {"sessions": [HistorySummary.from_session(s) for s in sessions]}


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def clear_history(request: Request) -> None:
    container: AppContainer = request.app.state.container
    container.session_recorder.clear()


@router.get("/{session_id}")
async def get_session(session_id: str, request: Request) -> HistorySession:
    container: AppContainer = request.app.state.container
    return _find(container, session_id)


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(session_id: str, request: Request) -> None:
    container: AppContainer = request.app.state.container
    if not container.session_recorder.delete(session_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)


@router.get("/{session_id}/archive")
async def download_archive(session_id: str, request: Request) -> Response:
    """Download every image of a session as a ZIP file."""
    container: AppContainer = request.app.state.container
    session = _find(container, session_id)
    try:
        content = build_session_archive(session)
    except EmptyArchiveError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)
        ) from exc
    filename = archive_file_name(session)
    return Response(
        content=content,
        media_type="application/zip",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


def _find(container: "AppContainer", session_id: str) -> HistorySession:
    session = container.session_recorder.get(session_id)
    if session is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return session
