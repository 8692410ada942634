"""Supabase-backed project documents and media storage."""

import logging
import re
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime

from supabase import Client

from progress_portal.domain.projects import Project
from progress_portal.domain.uploads import LocalFile
from progress_portal.services.projects import ContentStore, ProjectsListener

_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")

_logger = logging.getLogger(__name__)


@dataclass
class SupabaseContentStore(ContentStore):
    """Stores each project as one JSON document and media in a bucket."""

    client: Client
    table: str = "projects"
    bucket: str = "project-media"
    _listeners: list[ProjectsListener] = field(default_factory=list, init=False)

    def subscribe(self, on_change: ProjectsListener) -> Callable[[], None]:
        """Deliver the current projects now and after every write."""
        on_change(self.list_projects())
        self._listeners.append(on_change)

        def unsubscribe() -> None:
            if on_change in self._listeners:
                self._listeners.remove(on_change)

        return unsubscribe

    def list_projects(self) -> list[Project]:
        """Return all projects, newest first."""
        response = (
            self.client.table(self.table)
            .select("id, data")
            .order("created_at", desc=True)
            .execute()
        )
        return [Project.from_document(row["data"]) for row in response.data or []]

    def get(self, project_id: str) -> Project | None:
        """Return a project by id, if present."""
        response = (
            self.client.table(self.table)
            .select("id, data")
            .eq("id", project_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return Project.from_document(response.data[0]["data"])

    def put(self, project: Project) -> None:
        """Upsert the whole project document."""
        response = (
            self.client.table(self.table)
            .upsert(
                {
                    "id": project.id,
                    "data": project.to_document(),
                    "updated_at": datetime.now(tz=UTC).isoformat(),
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError(f"Failed to write project {project.id}")
        self._notify()

    def delete(self, project_id: str) -> None:
        """Delete a project row."""
        self.client.table(self.table).delete().eq("id", project_id).execute()
        self._notify()

    def upload_blob(self, file: LocalFile, scope_id: str) -> str:
        """Upload file bytes under the project's folder and return its URL."""
        path = f"{scope_id}/{int(time.time() * 1000)}-{_safe_name(file.name)}"
        bucket = self.client.storage.from_(self.bucket)
        bucket.upload(
            path,
            file.content,
            {"content-type": file.content_type, "upsert": "false"},
        )
        url = bucket.get_public_url(path)
        if not url:
            raise RuntimeError(f"Failed to resolve public URL for {path}")
        return url

    def _notify(self) -> None:
        if not self._listeners:
            return
        try:
            projects = self.list_projects()
        except Exception:
            _logger.exception("Failed to reload projects after write")
            return
        for listener in list(self._listeners):
            try:
                listener(projects)
            except Exception:
                _logger.exception("Project listener failed")


def _safe_name(name: str) -> str:
    cleaned = _UNSAFE_NAME_CHARS.sub("_", name).strip("._")
    return cleaned or "file"
