"""Project, weekly update and upload endpoints."""

from __future__ import annotations

from fastapi import (
    APIRouter,
    Depends,
    File,
    HTTPException,
    Request,
    UploadFile,
    status,
)

from progress_portal.api.dependencies import (
    current_user,
    device_controller,
    get_container,
    require_admin,
    require_device,
)
from progress_portal.api.schemas import (
    AccessCodeRequest,
    EditRequest,
    MediaUrlRequest,
    QuestionRequest,
    SelectRequest,
    serialize_project,
    serialize_queue,
    serialize_state,
    to_edit,
)
from progress_portal.domain.projects import ProjectDraft
from progress_portal.domain.uploads import LocalFile
from progress_portal.domain.users import User  # noqa: TC001
from progress_portal.i18n import translate
from progress_portal.services.view import ViewController  # noqa: TC001

router = APIRouter(tags=["projects"])


def _activate(controller: ViewController, project_id: str, update_index: int) -> None:
    """Open a project and select one of its updates, or fail when locked."""
    if not controller.select_project(project_id):
        controller.cancel_unlock()
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=translate(controller.state.language, "project_locked"),
        )
    try:
        controller.select_update(update_index)
    except IndexError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND) from exc


@router.get("/projects")
async def list_projects(
    request: Request,
    user: User | None = Depends(current_user),
    controller: ViewController = Depends(device_controller),
) -> dict[str, object]:
    """Return project cards with their lock state on the calling device."""
    is_admin = user is not None and user.is_admin
    projects = []
    for project in get_container(request).project_service.list_projects():
        card = serialize_project(project, include_secret=is_admin)
        card["unlocked"] = controller.unlock_service.is_unlocked(project, user)
        projects.append(card)
    return {"projects": projects}


@router.post("/projects", status_code=status.HTTP_201_CREATED)
async def create_project(
    draft: ProjectDraft,
    _admin: User = Depends(require_admin),
    controller: ViewController = Depends(device_controller),
) -> dict[str, object]:
    """Create a project with its first weekly update."""
    project = controller.create_project(draft)
    return serialize_project(project, include_secret=True)


@router.get("/projects/{project_id}")
async def project_detail(
    project_id: str,
    request: Request,
    user: User | None = Depends(current_user),
    controller: ViewController = Depends(device_controller),
) -> dict[str, object]:
    """Return a project's full document when the device has unlocked it."""
    project = get_container(request).project_service.get_project(project_id)
    if not controller.unlock_service.is_unlocked(project, user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=translate(controller.state.language, "project_locked"),
        )
    is_admin = user is not None and user.is_admin
    return serialize_project(project, include_secret=is_admin)


@router.delete("/projects/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(
    project_id: str,
    _admin: User = Depends(require_admin),
    controller: ViewController = Depends(device_controller),
) -> None:
    """Delete a project and all of its updates."""
    controller.delete_project(project_id)


@router.post("/projects/{project_id}/unlock")
async def unlock_project(
    project_id: str,
    payload: AccessCodeRequest,
    _device: str = Depends(require_device),
    controller: ViewController = Depends(device_controller),
) -> dict[str, object]:
    """Unlock a project on the calling device with its access code."""
    if controller.select_project(project_id):
        return {"unlocked": True}
    if controller.submit_access_code(payload.code):
        return {"unlocked": True}
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=controller.state.unlock_error,
    )


@router.post("/projects/{project_id}/select")
async def select_project(
    project_id: str,
    payload: SelectRequest,
    _device: str = Depends(require_device),
    controller: ViewController = Depends(device_controller),
) -> dict[str, object]:
    """Open a project and make one of its updates active."""
    _activate(controller, project_id, payload.update_index)
    return serialize_state(controller.state)


@router.post("/projects/{project_id}/updates", status_code=status.HTTP_201_CREATED)
async def add_weekly_update(
    project_id: str,
    _admin: User = Depends(require_admin),
    controller: ViewController = Depends(device_controller),
) -> dict[str, object]:
    """Prepend a new week to the project."""
    _activate(controller, project_id, 0)
    project = controller.add_week()
    return serialize_project(project, include_secret=True)


@router.patch("/projects/{project_id}/updates/{update_index}")
async def edit_weekly_update(
    project_id: str,
    update_index: int,
    payload: EditRequest,
    _admin: User = Depends(require_admin),
    controller: ViewController = Depends(device_controller),
) -> dict[str, object]:
    """Replace one field of a weekly update."""
    _activate(controller, project_id, update_index)
    project = controller.edit_update(to_edit(payload))
    return serialize_project(project, include_secret=True)


@router.post(
    "/projects/{project_id}/updates/{update_index}/media",
    status_code=status.HTTP_201_CREATED,
)
async def add_media_url(
    project_id: str,
    update_index: int,
    payload: MediaUrlRequest,
    _admin: User = Depends(require_admin),
    controller: ViewController = Depends(device_controller),
) -> dict[str, object]:
    """Attach media hosted at a URL to a weekly update."""
    _activate(controller, project_id, update_index)
    project = controller.add_media_url(
        payload.url, payload.type, payload.description
    )
    return serialize_project(project, include_secret=True)


@router.get("/projects/{project_id}/updates/{update_index}/insight")
async def update_insight(
    project_id: str,
    update_index: int,
    request: Request,
    controller: ViewController = Depends(device_controller),
) -> dict[str, str]:
    """Return an AI executive summary of a weekly update."""
    _activate(controller, project_id, update_index)
    project = controller.state.active_project
    update = controller.state.active_update
    if project is None or update is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    report = await get_container(request).insight_service.generate_report(
        project, update
    )
    return {"report": report}


@router.post("/projects/{project_id}/assistant")
async def ask_assistant(
    project_id: str,
    payload: QuestionRequest,
    request: Request,
    controller: ViewController = Depends(device_controller),
) -> dict[str, str]:
    """Answer a client question about the project."""
    _activate(controller, project_id, 0)
    container = get_container(request)
    project = container.project_service.get_project(project_id)
    answer = await container.insight_service.answer_question(
        project, payload.question
    )
    return {"answer": answer}


@router.post("/uploads", status_code=status.HTTP_202_ACCEPTED)
async def enqueue_uploads(
    files: list[UploadFile] = File(...),
    _device: str = Depends(require_device),
    _admin: User = Depends(require_admin),
    controller: ViewController = Depends(device_controller),
) -> dict[str, object]:
    """Queue files for upload to the device's active weekly update."""
    max_bytes = controller.pipeline.max_file_bytes
    local_files = [await _to_local_file(upload, max_bytes) for upload in files]
    result = controller.enqueue_files(local_files)
    limit_mb = max_bytes // (1024 * 1024)
    return {
        "admitted": serialize_queue(result.admitted),
        "rejected": [
            {
                "fileName": error.file_name,
                "message": translate(
                    controller.state.language,
                    "file_too_large",
                    name=error.file_name,
                    limit_mb=limit_mb,
                ),
            }
            for error in result.rejected
        ],
    }


@router.get("/uploads")
async def upload_queue(
    _device: str = Depends(require_device),
    _admin: User = Depends(require_admin),
    controller: ViewController = Depends(device_controller),
) -> dict[str, object]:
    """Return the device's upload queue."""
    return {"items": serialize_queue(controller.pipeline.snapshot())}


async def _to_local_file(upload: UploadFile, max_bytes: int) -> LocalFile:
    """Buffer an uploaded file; oversized files are not read into memory."""
    too_large = upload.size is not None and upload.size > max_bytes
    return LocalFile(
        name=upload.filename or "upload",
        content_type=upload.content_type or "application/octet-stream",
        content=b"" if too_large else await upload.read(),
        size=upload.size,
    )
