"""Credential management endpoints."""

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, HTTPException, Request, status

from bulk_image_generator.api.deps import require_access
from bulk_image_generator.api.models import CredentialCreate, CredentialView
from bulk_image_generator.domain.credentials import Credential

if TYPE_CHECKING:
    from bulk_image_generator.containers import AppContainer

router = APIRouter(
    prefix="/credentials", tags=["credentials"], dependencies=[Depends(require_access)]
)


@router.get("")
async def list_credentials(request: Request) -> dict[str, list[CredentialView]]:
    """Return the pool in rotation order, secrets masked."""
    container: AppContainer = request.app.state.container
    credentials = container.credential_service.list_credentials()
    return {"credentials": [CredentialView.from_credential(c) for c in credentials]}


@router.post("", status_code=status.HTTP_201_CREATED)
async def add_credential(payload: CredentialCreate, request: Request) -> CredentialView:
    """Add an API key; blank and duplicate keys are rejected."""
    container: AppContainer = request.app.state.container
    credential = container.credential_service.add(payload.secret, payload.provider)
    if credential is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="API key is empty or already added.",
        )
    return CredentialView.from_credential(credential)


@router.post("/reset")
async def reset_credentials(request: Request) -> dict[str, int]:
    """Reactivate every degraded key."""
    container: AppContainer = request.app.state.container
    return {"reactivated": container.credential_service.reset_all_degraded()}


@router.post("/{fingerprint}/reset")
async def reset_credential(fingerprint: str, request: Request) -> CredentialView:
    container: AppContainer = request.app.state.container
    credential = _find(container, fingerprint)
    container.credential_service.mark_active(credential.secret)
    return CredentialView.from_credential(credential)


@router.delete("/{fingerprint}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_credential(fingerprint: str, request: Request) -> None:
    container: AppContainer = request.app.state.container
    credential = _find(container, fingerprint)
    container.credential_service.remove(credential.secret)


def _find(container: "AppContainer", fingerprint: str) -> Credential:
    credential = container.credential_service.find_by_fingerprint(fingerprint)
    if credential is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return credential
