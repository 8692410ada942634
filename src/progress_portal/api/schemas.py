"""Pydantic models for API request and response payloads."""

from typing import Literal

from pydantic import BaseModel, Field

from progress_portal.domain.edits import (
    SetCaptureRef,
    SetStatsCompletion,
    SetStatsWeather,
    SetStatsWorkers,
    SetSummary,
    SetTitle,
    SetTourRef,
    UpdateEdit,
)
from progress_portal.domain.projects import MediaKind, Project
from progress_portal.domain.uploads import UploadQueueItem
from progress_portal.domain.users import AuthSession, User
from progress_portal.domain.view import AppState


class SignInRequest(BaseModel):
    email: str
    password: str


class SignUpRequest(BaseModel):
    email: str
    password: str = Field(min_length=6)
    name: str = Field(min_length=1)
    country_code: str | None = None


class AccessCodeRequest(BaseModel):
    code: str


class LanguageRequest(BaseModel):
    language: str


class SelectRequest(BaseModel):
    update_index: int = Field(default=0, ge=0)


class MediaUrlRequest(BaseModel):
    url: str
    type: MediaKind = MediaKind.PHOTO
    description: str | None = None


class QuestionRequest(BaseModel):
    question: str = Field(min_length=1)


class TextEditRequest(BaseModel):
    field: Literal["title", "summary", "splat_url", "tour_url", "weather"]
    value: str | None


class NumberEditRequest(BaseModel):
    field: Literal["completion", "workers"]
    value: int


EditRequest = TextEditRequest | NumberEditRequest


def to_edit(request: EditRequest) -> UpdateEdit:  # noqa: PLR0911
    """Translate an edit payload into a typed update edit."""
    if isinstance(request, NumberEditRequest):
        if request.field == "completion":
            return SetStatsCompletion(request.value)
        return SetStatsWorkers(request.value)
    if request.field == "title":
        return SetTitle(request.value or "")
    if request.field == "summary":
        return SetSummary(request.value or "")
    if request.field == "splat_url":
        return SetCaptureRef(request.value)
    if request.field == "tour_url":
        return SetTourRef(request.value)
    return SetStatsWeather(request.value or "")


def serialize_user(user: User | None) -> dict[str, object] | None:
    if user is None:
        return None
    return {
        "uid": user.uid,
        "name": user.name,
        "username": user.username,
        "email": user.email,
        "photoURL": user.photo_url,
        "countryCode": user.country_code,
        "isAdmin": user.is_admin,
    }


def serialize_session(session: AuthSession) -> dict[str, object]:
    return {
        "user": serialize_user(session.user),
        "accessToken": session.access_token,
    }


def serialize_project(project: Project, *, include_secret: bool) -> dict[str, object]:
    """Return the project document, hiding the access code from clients."""
    document = project.to_document()
    if not include_secret:
        document.pop("accessCode", None)
    return document


def serialize_queue(items: tuple[UploadQueueItem, ...]) -> list[dict[str, object]]:
    return [
        {
            "id": item.id,
            "fileName": item.file.name,
            "progress": item.progress,
            "status": item.status.value,
        }
        for item in items
    ]


def serialize_state(state: AppState) -> dict[str, object]:
    return {
        "view": state.view.value,
        "activeProjectId": state.active_project.id if state.active_project else None,
        "activeUpdateIndex": state.active_update_index,
        "pendingProjectId": state.pending_project.id if state.pending_project else None,
        "unlockError": state.unlock_error,
        "language": state.language,
        "user": serialize_user(state.user),
    }
