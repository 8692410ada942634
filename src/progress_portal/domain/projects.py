"""Project documents as stored in the content store."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class MediaKind(StrEnum):
    """Kinds of media attached to a weekly update."""

    PHOTO = "photo"
    VIDEO = "video"
    PANORAMIC = "360"


class MediaCategory(StrEnum):
    """Where on site a media item was captured."""

    INSIDE = "inside"
    OUTSIDE = "outside"
    DRONE = "drone"
    INTERIOR = "interior"
    OTHER = "other"


class _Document(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class MediaItem(_Document):
    """Photo, video or panoramic capture shown on an update."""

    id: str
    type: MediaKind
    url: str
    thumbnail: str | None = None
    description: str = ""
    category: MediaCategory | None = None


class UpdateStats(_Document):
    """Headline numbers for a week on site."""

    completion: int = Field(default=0, ge=0, le=100)
    workers_on_site: int = Field(default=0, ge=0)
    weather_conditions: str = ""


class WeeklyUpdate(_Document):
    """One dated progress entry within a project."""

    week_number: int
    date: str
    title: str
    summary: str = ""
    splat_url: str | None = None
    tour_url: str | None = Field(default=None, alias="floorfyUrl")
    media: tuple[MediaItem, ...] = ()
    stats: UpdateStats = Field(default_factory=UpdateStats)


class Project(_Document):
    """A construction project and its ordered weekly updates."""

    id: str
    name: str
    client_name: str
    location: str
    thumbnail_url: str
    access_code: str
    updates: tuple[WeeklyUpdate, ...] = ()
    description: str = ""

    def to_document(self) -> dict[str, object]:
        """Serialize to the camelCase JSON document persisted in the store."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @classmethod
    def from_document(cls, document: dict[str, object]) -> "Project":
        """Parse a stored JSON document."""
        return cls.model_validate(document)

    def with_update(self, index: int, update: WeeklyUpdate) -> "Project":
        """Return a copy with the update at ``index`` replaced."""
        updates = list(self.updates)
        updates[index] = update
        return self.model_copy(update={"updates": tuple(updates)})


class ProjectDraft(BaseModel):
    """Fields an admin fills in when creating a project."""

    name: str
    client_name: str
    location: str
    access_code: str
    description: str = ""
    thumbnail_url: str | None = None


class ProjectNotFoundError(LookupError):
    """Raised when a project id is not present in the store."""

    def __init__(self, project_id: str) -> None:
        super().__init__(f"Project not found: {project_id}")
        self.project_id = project_id
