"""Endpoints for starting, watching and stopping generation runs."""

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, HTTPException, Request, status

from bulk_image_generator.api.deps import require_access
from bulk_image_generator.api.models import RunRequest, RunView
from bulk_image_generator.domain.errors import RunInProgressError, RunPreconditionError

if TYPE_CHECKING:
    from bulk_image_generator.containers import AppContainer

router = APIRouter(
    prefix="/runs", tags=["runs"], dependencies=[Depends(require_access)]
)


@router.post("", status_code=status.HTTP_202_ACCEPTED)
async def start_run(payload: RunRequest, request: Request) -> RunView:
    """Start a background run over the submitted prompts."""
    container: AppContainer = request.app.state.container
    try:
        snapshot = container.run_manager.start(
            payload.prompt_list(), payload.image_count, provider=payload.provider
        )
    except RunPreconditionError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
        ) from exc
    except RunInProgressError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail=str(exc)
        ) from exc
    return RunView.from_snapshot(snapshot)


@router.get("/current")
async def current_run(request: Request) -> RunView:
    """Return status messages and outcomes of the latest run."""
    container: AppContainer = request.app.state.container
    snapshot = container.run_manager.current
    if snapshot is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return RunView.from_snapshot(snapshot)


@router.post("/current/cancel")
async def cancel_run(request: Request) -> dict[str, bool]:
    """Ask the active run to stop after the in-flight call."""
    container: AppContainer = request.app.state.container
    return {"cancelled": container.run_manager.cancel()}
