"""View controller: navigation, selection and dispatch of user intents."""

import asyncio
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Protocol

from progress_portal.domain.edits import UpdateEdit
from progress_portal.domain.projects import MediaKind, Project, ProjectDraft
from progress_portal.domain.uploads import EnqueueResult, LocalFile
from progress_portal.domain.users import User
from progress_portal.domain.view import AppState, AppView, NoActiveProjectError
from progress_portal.i18n import translate
from progress_portal.services.editor import UpdateEditor
from progress_portal.services.preferences import LanguagePreference, PreferenceService
from progress_portal.services.projects import ContentStore, ProjectService
from progress_portal.services.sessions import AccessDeniedError, SessionService
from progress_portal.services.unlocks import (
    InvalidAccessCodeError,
    UnlockLedger,
    UnlockService,
)
from progress_portal.services.uploads import UploadPipeline, UploadTarget

_logger = logging.getLogger(__name__)


class DeviceStateStore(UnlockLedger, LanguagePreference, Protocol):
    """Unlock ledger and language preference of one device."""


def active_upload_target(state: AppState) -> UploadTarget | None:
    """Return where uploaded media should go, or None when nothing is open."""
    if state.active_project is None or not state.active_project.updates:
        return None
    return UploadTarget(
        project_id=state.active_project.id,
        update_index=state.active_update_index,
    )


def _running_loop() -> asyncio.AbstractEventLoop | None:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


@dataclass
class ViewController:
    """Holds navigation state and delegates domain writes to services.

    The controller never writes project data itself: edits go through the
    update editor, uploads through the pipeline, and store change
    notifications refresh the active project. One controller serves one
    device; store notifications raised on worker threads are handed to the
    event loop the controller was started on.
    """

    state: AppState
    store: ContentStore
    session_service: SessionService
    project_service: ProjectService
    unlock_service: UnlockService
    editor: UpdateEditor
    pipeline: UploadPipeline
    preference_service: PreferenceService
    _unsubscribers: list[Callable[[], None]] = field(default_factory=list, init=False)
    _loop: asyncio.AbstractEventLoop | None = field(default=None, init=False)

    def start(self) -> None:
        """Load persisted state and start listening for project changes."""
        self._loop = _running_loop()
        self.state.language = self.preference_service.get_language()
        self._unsubscribers.append(self.store.subscribe(self._deliver_projects))

    def stop(self) -> None:
        """Stop listening for external changes."""
        while self._unsubscribers:
            self._unsubscribers.pop()()

    def visible_projects(self) -> list[tuple[Project, bool]]:
        """Return projects paired with whether they are unlocked."""
        return [
            (project, self.unlock_service.is_unlocked(project, self.state.user))
            for project in self.state.projects
        ]

    def select_project(self, project_id: str) -> bool:
        """Open a project, or ask for its access code when locked."""
        project = self.project_service.get_project(project_id)
        self.state.unlock_error = None
        if self.unlock_service.is_unlocked(project, self.state.user):
            self._open(project)
            return True
        self.state.pending_project = project
        return False

    def submit_access_code(self, code: str) -> bool:
        """Try to unlock the pending project with ``code``."""
        project = self.state.pending_project
        if project is None:
            return False
        try:
            self.unlock_service.submit_code(project, code)
        except InvalidAccessCodeError:
            self.state.unlock_error = translate(
                self.state.language, "invalid_access_code"
            )
            return False
        self._open(project)
        return True

    def cancel_unlock(self) -> None:
        self.state.pending_project = None
        self.state.unlock_error = None

    def select_update(self, index: int) -> None:
        """Make another weekly update of the open project active."""
        project = self.state.active_project
        if project is None:
            raise NoActiveProjectError("No project is open")
        if not 0 <= index < len(project.updates):
            raise IndexError(f"Project {project.id} has no update at index {index}")
        self.state.active_update_index = index
        self.pipeline.notify_target_changed()

    def go_home(self) -> None:
        self.state.view = AppView.HOME
        self.state.active_project = None
        self.state.active_update_index = 0

    def open_profile(self) -> None:
        self.state.view = AppView.PROFILE

    def sync_user(self, user: User | None) -> None:
        """Adopt the user the current request authenticated as."""
        if user != self.state.user:
            self._on_session_changed(user)

    def logout(self, access_token: str) -> None:
        """Sign out and reset navigation."""
        self.session_service.logout(access_token)
        self._on_session_changed(None)

    def set_language(self, code: str) -> str:
        self.state.language = self.preference_service.set_language(code)
        return self.state.language

    def create_project(self, draft: ProjectDraft) -> Project:
        self._require_admin()
        return self.project_service.create_project(draft)

    def delete_project(self, project_id: str) -> None:
        self._require_admin()
        self.project_service.delete_project(project_id)

    def add_week(self) -> Project:
        """Prepend a new weekly update to the open project and select it."""
        self._require_admin()
        project = self._require_active()
        refreshed = self.project_service.add_weekly_update(project.id)
        self.state.active_project = refreshed
        self.state.active_update_index = 0
        self.pipeline.notify_target_changed()
        return refreshed

    def edit_update(self, edit: UpdateEdit) -> Project:
        """Apply an edit to the active weekly update."""
        self._require_admin()
        project = self._require_active()
        refreshed = self.editor.apply(
            project.id, self.state.active_update_index, edit
        )
        self.state.active_project = refreshed
        return refreshed

    def add_media_url(
        self, url: str, kind: MediaKind, description: str | None = None
    ) -> Project:
        self._require_admin()
        project = self._require_active()
        refreshed = self.project_service.add_media_url(
            project.id, self.state.active_update_index, url, kind, description
        )
        self.state.active_project = refreshed
        return refreshed

    def enqueue_files(self, files: Iterable[LocalFile]) -> EnqueueResult:
        """Queue local files for upload to the active weekly update."""
        self._require_admin()
        return self.pipeline.enqueue(files)

    def _open(self, project: Project) -> None:
        self.state.active_project = project
        self.state.active_update_index = 0
        self.state.pending_project = None
        self.state.unlock_error = None
        self.state.view = AppView.PROJECT_DETAIL
        self.pipeline.notify_target_changed()

    def _require_admin(self) -> None:
        if not self.state.is_admin:
            raise AccessDeniedError("Admin role required")

    def _require_active(self) -> Project:
        if self.state.active_project is None:
            raise NoActiveProjectError("No project is open")
        return self.state.active_project

    def _deliver_projects(self, projects: list[Project]) -> None:
        loop = self._loop
        if loop is None or loop.is_closed() or _running_loop() is loop:
            self._on_projects_changed(projects)
            return
        loop.call_soon_threadsafe(self._on_projects_changed, projects)

    def _on_projects_changed(self, projects: list[Project]) -> None:
        self.state.projects = projects
        active = self.state.active_project
        if active is None:
            return
        refreshed = next((p for p in projects if p.id == active.id), None)
        if refreshed is None:
            _logger.info("Active project removed", extra={"project_id": active.id})
            self.go_home()
            return
        self.state.active_project = refreshed
        if self.state.active_update_index >= len(refreshed.updates):
            self.state.active_update_index = 0

    def _on_session_changed(self, user: User | None) -> None:
        previous = self.state.user
        self.state.user = user
        if user is None or (previous is not None and previous.uid != user.uid):
            self.go_home()
            self.state.pending_project = None
            self.state.unlock_error = None


@dataclass
class PortalSessions:
    """View controllers keyed by the device they serve.

    A device gets its own navigation state, upload queue and unlock ledger.
    Callers without a device id get a throwaway controller whose state lives
    in memory for one request.
    """

    build: Callable[[DeviceStateStore], ViewController]
    device_state: Callable[[str | None], DeviceStateStore]
    _controllers: dict[str, ViewController] = field(default_factory=dict, init=False)

    def get(self, device_id: str) -> ViewController:
        """Return the device's controller, starting it on first use."""
        controller = self._controllers.get(device_id)
        if controller is None:
            controller = self.build(self.device_state(device_id))
            controller.start()
            self._controllers[device_id] = controller
            _logger.info("Device session started", extra={"device_id": device_id})
        return controller

    def anonymous(self) -> ViewController:
        """Return a controller that remembers nothing after the request."""
        controller = self.build(self.device_state(None))
        controller.state.language = controller.preference_service.get_language()
        return controller

    async def close(self) -> None:
        """Stop every device's controller and upload worker."""
        while self._controllers:
            _, controller = self._controllers.popitem()
            controller.stop()
            await controller.pipeline.close()
