"""Access-code gate in front of a project's detail view."""

import logging
from dataclasses import dataclass
from typing import Protocol

from progress_portal.domain.projects import Project
from progress_portal.domain.users import User

_logger = logging.getLogger(__name__)


class UnlockLedger(Protocol):
    """Device-local set of project ids the client has unlocked."""

    def get(self) -> set[str]:
        """Return the unlocked project ids."""

    def set(self, ids: set[str]) -> None:
        """Replace the unlocked project ids."""


class InvalidAccessCodeError(ValueError):
    """The submitted code does not match the project's access code."""


@dataclass
class UnlockService:
    """State machine for Locked -> Unlocked per project."""

    ledger: UnlockLedger

    def is_unlocked(self, project: Project, user: User | None) -> bool:
        """Return True when the user may see the project."""
        if user is not None and user.is_admin:
            return True
        return project.id in self.ledger.get()

    def unlocked_ids(self) -> set[str]:
        """Return every project id unlocked on this device."""
        return self.ledger.get()

    def submit_code(self, project: Project, code: str) -> None:
        """Unlock the project or raise when the code is wrong."""
        if code != project.access_code:
            _logger.info("Access code rejected", extra={"project_id": project.id})
            raise InvalidAccessCodeError(project.id)
        unlocked = self.ledger.get()
        if project.id in unlocked:
            return
        self.ledger.set(unlocked | {project.id})
        _logger.info("Project unlocked", extra={"project_id": project.id})
