"""Project administration on top of the content store."""

import logging
import random
import string
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date
from typing import Protocol

from progress_portal.domain.projects import (
    MediaItem,
    MediaKind,
    Project,
    ProjectDraft,
    ProjectNotFoundError,
    UpdateStats,
    WeeklyUpdate,
)
from progress_portal.domain.uploads import LocalFile

DEFAULT_THUMBNAIL_URL = (
    "https://images.unsplash.com/photo-1541888946425-d81bb19240f5?q=80&w=1000"
)

_logger = logging.getLogger(__name__)

ProjectsListener = Callable[[list[Project]], None]


class ContentStore(Protocol):
    """Persistence and change notification for project documents."""

    def subscribe(self, on_change: ProjectsListener) -> Callable[[], None]:
        """Register a listener and return a function that removes it."""

    def list_projects(self) -> list[Project]:
        """Return every stored project."""

    def get(self, project_id: str) -> Project | None:
        """Return a project by id, if present."""

    def put(self, project: Project) -> None:
        """Replace the whole project document."""

    def delete(self, project_id: str) -> None:
        """Delete a project document."""

    def upload_blob(self, file: LocalFile, scope_id: str) -> str:
        """Persist raw file bytes and return a durable locator."""


def new_media_id() -> str:
    """Build a media id from the current time and a random suffix."""
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=7))
    return f"{int(time.time() * 1000)}-{suffix}"


def prepend_media(project: Project, update_index: int, item: MediaItem) -> Project:
    """Return a copy of the project with ``item`` first on the given update."""
    update = project.updates[update_index]
    refreshed = update.model_copy(update={"media": (item, *update.media)})
    return project.with_update(update_index, refreshed)


@dataclass
class ProjectService:
    """Service for creating projects and their weekly updates."""

    store: ContentStore
    today: Callable[[], date] = field(default=date.today)

    def list_projects(self) -> list[Project]:
        """Return all projects."""
        return self.store.list_projects()

    def get_project(self, project_id: str) -> Project:
        """Return a project or raise when it does not exist."""
        project = self.store.get(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        return project

    def create_project(self, draft: ProjectDraft) -> Project:
        """Create a project with a single seed update."""
        project_id = f"p_{int(time.time() * 1000)}"
        if self.store.get(project_id) is not None:
            raise ValueError(f"Project ID exists: {project_id}")
        seed = WeeklyUpdate(
            week_number=1,
            date=self.today().isoformat(),
            title="Project Initialization",
            summary="Project setup complete. Initial site surveys scheduled.",
            stats=UpdateStats(
                completion=0, workers_on_site=0, weather_conditions="N/A"
            ),
        )
        project = Project(
            id=project_id,
            name=draft.name,
            client_name=draft.client_name,
            location=draft.location,
            thumbnail_url=draft.thumbnail_url or DEFAULT_THUMBNAIL_URL,
            access_code=draft.access_code,
            description=draft.description,
            updates=(seed,),
        )
        self.store.put(project)
        _logger.info("Project created", extra={"project_id": project_id})
        return project

    def add_weekly_update(self, project_id: str) -> Project:
        """Prepend a new week, carrying over the latest stats."""
        project = self.get_project(project_id)
        latest = project.updates[0] if project.updates else None
        week_number = max((u.week_number for u in project.updates), default=0) + 1
        update = WeeklyUpdate(
            week_number=week_number,
            date=self.today().isoformat(),
            title=f"Week {week_number}",
            stats=latest.stats if latest else UpdateStats(),
        )
        refreshed = project.model_copy(
            update={"updates": (update, *project.updates)}
        )
        self.store.put(refreshed)
        return refreshed

    def add_media_url(  # noqa: PLR0913
        self,
        project_id: str,
        update_index: int,
        url: str,
        kind: MediaKind = MediaKind.PHOTO,
        description: str | None = None,
    ) -> Project:
        """Attach media hosted elsewhere to an update."""
        project = self.get_project(project_id)
        check_update_index(project, update_index)
        item = MediaItem(
            id=new_media_id(),
            type=kind,
            url=url,
            description=description or "New Upload",
            thumbnail=url if kind == MediaKind.VIDEO else None,
        )
        refreshed = prepend_media(project, update_index, item)
        self.store.put(refreshed)
        return refreshed

    def delete_project(self, project_id: str) -> None:
        """Delete a project and everything in it."""
        self.store.delete(project_id)
        _logger.info("Project deleted", extra={"project_id": project_id})


def check_update_index(project: Project, update_index: int) -> None:
    if not 0 <= update_index < len(project.updates):
        raise IndexError(
            f"Project {project.id} has no update at index {update_index}"
        )
