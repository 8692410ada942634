"""FastAPI application factory."""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

from progress_portal.api.dependencies import (
    bearer_token,
    current_user,
    device_controller,
    get_container,
    require_device,
)
from progress_portal.api.projects import router as projects_router
from progress_portal.api.schemas import (
    LanguageRequest,
    SignInRequest,
    SignUpRequest,
    serialize_session,
    serialize_state,
    serialize_user,
)
from progress_portal.app_logging import configure_logging
from progress_portal.containers import AppContainer
from progress_portal.domain.projects import ProjectNotFoundError
from progress_portal.domain.users import User
from progress_portal.domain.view import NoActiveProjectError
from progress_portal.i18n import translate
from progress_portal.services.sessions import AccessDeniedError
from progress_portal.services.view import ViewController


def _request_language(request: Request) -> str | None:
    controller = getattr(request.state, "controller", None)
    return controller.state.language if controller is not None else None


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        state_container: AppContainer = app.state.container
        await state_container.sessions.close()
        await state_container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(projects_router)

    @app.exception_handler(ProjectNotFoundError)
    async def project_not_found(
        request: Request, exc: ProjectNotFoundError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={
                "detail": translate(_request_language(request), "project_not_found")
            },
        )

    @app.exception_handler(AccessDeniedError)
    async def access_denied(request: Request, exc: AccessDeniedError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_403_FORBIDDEN, content={"detail": str(exc)}
        )

    @app.exception_handler(NoActiveProjectError)
    async def no_active_project(
        request: Request, exc: NoActiveProjectError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)}
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/session")
    async def get_session(
        user: User | None = Depends(current_user),
    ) -> dict[str, object]:
        """Return the user the request's token belongs to, if any."""
        return {"user": serialize_user(user)}

    @app.post("/session")
    async def sign_in(payload: SignInRequest, request: Request) -> dict[str, object]:
        """Sign in with email and password and return a bearer token."""
        session_service = get_container(request).session_service
        try:
            session = await asyncio.to_thread(
                session_service.sign_in, payload.email, payload.password
            )
        except Exception as exc:
            logger.warning("Sign in failed: %s", exc)
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid credentials",
            ) from exc
        return serialize_session(session)

    @app.post("/session/register", status_code=status.HTTP_201_CREATED)
    async def register(payload: SignUpRequest, request: Request) -> dict[str, object]:
        """Create an account; the token is null until the email is confirmed."""
        session_service = get_container(request).session_service
        try:
            session = await asyncio.to_thread(
                session_service.sign_up,
                payload.email,
                payload.password,
                name=payload.name,
                country_code=payload.country_code,
            )
        except Exception as exc:
            logger.warning("Registration failed: %s", exc)
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Registration failed",
            ) from exc
        return serialize_session(session)

    @app.delete("/session", status_code=status.HTTP_204_NO_CONTENT)
    async def sign_out(
        access_token: str | None = Depends(bearer_token),
        controller: ViewController = Depends(device_controller),
    ) -> None:
        """Revoke the request's token and reset the device's navigation."""
        if access_token is None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
        controller.logout(access_token)

    @app.get("/state")
    async def view_state(
        controller: ViewController = Depends(device_controller),
    ) -> dict[str, object]:
        """Return the device's navigation and selection state."""
        return serialize_state(controller.state)

    @app.get("/preferences/language")
    async def get_language(
        controller: ViewController = Depends(device_controller),
    ) -> dict[str, str]:
        """Return the device's language preference."""
        return {"language": controller.preference_service.get_language()}

    @app.put("/preferences/language")
    async def set_language(
        payload: LanguageRequest,
        _device: str = Depends(require_device),
        controller: ViewController = Depends(device_controller),
    ) -> dict[str, str]:
        """Persist the device's language preference."""
        try:
            language = controller.set_language(payload.language)
        except ValueError as exc:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
            ) from exc
        return {"language": language}

    return app
