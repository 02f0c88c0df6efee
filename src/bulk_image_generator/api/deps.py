"""Shared request dependencies."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Depends, Header, HTTPException, Request, status

if TYPE_CHECKING:
    from bulk_image_generator.containers import AppContainer


def _get_access_token(request: Request) -> str | None:
    container: AppContainer = request.app.state.container
    return container.settings.access_token


async def require_access(
    x_access_token: str | None = Header(default=None),
    access_token: str | None = Depends(_get_access_token),
) -> None:
    """Ensure requests carry the configured access token, if any."""
    if access_token is None:
        return
    if not x_access_token or x_access_token != access_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
