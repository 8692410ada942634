"""Request-scoped identity and device resolution."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from fastapi import Depends, Header, HTTPException, Request, status

from progress_portal.domain.users import User  # noqa: TC001
from progress_portal.i18n import translate
from progress_portal.services.view import ViewController  # noqa: TC001

if TYPE_CHECKING:
    from progress_portal.containers import AppContainer


def get_container(request: Request) -> AppContainer:
    return request.app.state.container


def bearer_token(authorization: str | None = Header(default=None)) -> str | None:
    """Return the bearer token of the request, if it sent one."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    return token.strip()


async def current_user(
    request: Request, access_token: str | None = Depends(bearer_token)
) -> User | None:
    """Resolve the user the request's token belongs to.

    Requests without a token are anonymous; a token the auth provider does
    not accept is rejected.
    """
    if access_token is None:
        return None
    session_service = get_container(request).session_service
    user = await asyncio.to_thread(session_service.current_user, access_token)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired session",
        )
    return user


async def device_controller(
    request: Request,
    x_device_id: str | None = Header(default=None),
    user: User | None = Depends(current_user),
) -> ViewController:
    """Return the view controller of the calling device."""
    sessions = get_container(request).sessions
    controller = sessions.get(x_device_id) if x_device_id else sessions.anonymous()
    controller.sync_user(user)
    request.state.controller = controller
    return controller


async def require_device(x_device_id: str | None = Header(default=None)) -> str:
    """Ensure the request names the device whose state it changes."""
    if not x_device_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-Device-Id header is required",
        )
    return x_device_id


async def require_admin(
    controller: ViewController = Depends(device_controller),
) -> User:
    """Ensure the request comes from a signed-in admin."""
    user = controller.state.user
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=translate(controller.state.language, "admin_required"),
        )
    return user
