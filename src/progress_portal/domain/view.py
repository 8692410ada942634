"""Navigation and selection state for the portal."""

from dataclasses import dataclass, field
from enum import StrEnum

from progress_portal.domain.projects import Project, WeeklyUpdate
from progress_portal.domain.users import User
from progress_portal.i18n import DEFAULT_LANGUAGE


class AppView(StrEnum):
    HOME = "home"
    PROJECT_DETAIL = "project_detail"
    PROFILE = "profile"


@dataclass
class AppState:
    """Mutable application state, written only by the view controller."""

    user: User | None = None
    view: AppView = AppView.HOME
    projects: list[Project] = field(default_factory=list)
    active_project: Project | None = None
    active_update_index: int = 0
    pending_project: Project | None = None
    unlock_error: str | None = None
    language: str = DEFAULT_LANGUAGE

    @property
    def is_admin(self) -> bool:
        return self.user is not None and self.user.is_admin

    @property
    def active_update(self) -> WeeklyUpdate | None:
        project = self.active_project
        if project is None or not project.updates:
            return None
        return project.updates[self.active_update_index]


class NoActiveProjectError(LookupError):
    """An action needs an open project but none is selected."""
