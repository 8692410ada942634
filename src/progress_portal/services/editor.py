"""Single-field edits to a weekly update."""

import logging
from dataclasses import dataclass

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
from progress_portal.domain.projects import Project, ProjectNotFoundError, WeeklyUpdate
from progress_portal.services.projects import ContentStore, check_update_index

_logger = logging.getLogger(__name__)


def apply_edit(update: WeeklyUpdate, edit: UpdateEdit) -> WeeklyUpdate:  # noqa: PLR0911
    """Return a copy of ``update`` with exactly one field replaced."""
    if isinstance(edit, SetTitle):
        return update.model_copy(update={"title": edit.value})
    if isinstance(edit, SetSummary):
        return update.model_copy(update={"summary": edit.value})
    if isinstance(edit, SetCaptureRef):
        return update.model_copy(update={"splat_url": edit.value or None})
    if isinstance(edit, SetTourRef):
        return update.model_copy(update={"tour_url": edit.value or None})
    if isinstance(edit, SetStatsCompletion):
        completion = min(max(edit.value, 0), 100)
        return _with_stats(update, completion=completion)
    if isinstance(edit, SetStatsWorkers):
        return _with_stats(update, workers_on_site=max(edit.value, 0))
    if isinstance(edit, SetStatsWeather):
        return _with_stats(update, weather_conditions=edit.value)
    raise TypeError(f"Unsupported edit: {edit!r}")


def _with_stats(update: WeeklyUpdate, **changes: object) -> WeeklyUpdate:
    stats = update.stats.model_copy(update=changes)
    return update.model_copy(update={"stats": stats})


@dataclass
class UpdateEditor:
    """Applies edits and writes the whole project back."""

    store: ContentStore

    def apply(self, project_id: str, update_index: int, edit: UpdateEdit) -> Project:
        """Apply one edit to one update and persist the project."""
        project = self.store.get(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        check_update_index(project, update_index)
        edited = apply_edit(project.updates[update_index], edit)
        refreshed = project.with_update(update_index, edited)
        self.store.put(refreshed)
        _logger.debug(
            "Update edited",
            extra={"project_id": project_id, "edit": type(edit).__name__},
        )
        return refreshed
