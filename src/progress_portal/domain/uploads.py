"""Models for the bulk media upload queue."""

from dataclasses import dataclass, replace
from enum import StrEnum


class UploadStatus(StrEnum):
    """Lifecycle of a queued upload."""

    PENDING = "pending"
    UPLOADING = "uploading"
    COMPLETED = "completed"
    ERROR = "error"


TERMINAL_STATUSES = frozenset({UploadStatus.COMPLETED, UploadStatus.ERROR})


@dataclass(frozen=True)
class LocalFile:
    """A file selected on the device, held in memory until uploaded."""

    name: str
    content_type: str
    content: bytes
    size: int | None = None

    @property
    def byte_size(self) -> int:
        """Declared size, falling back to the content length."""
        return self.size if self.size is not None else len(self.content)


@dataclass(frozen=True)
class UploadQueueItem:
    """One file waiting for, or done with, its upload."""

    id: str
    file: LocalFile
    progress: int = 0
    status: UploadStatus = UploadStatus.PENDING

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def transition(
        self, status: UploadStatus, progress: int | None = None
    ) -> "UploadQueueItem":
        """Return a copy in the given status."""
        return replace(
            self,
            status=status,
            progress=self.progress if progress is None else progress,
        )


class FileTooLargeError(ValueError):
    """A selected file exceeds the upload size ceiling."""

    def __init__(self, file_name: str, size: int, limit: int) -> None:
        super().__init__(
            f"{file_name} is {size} bytes, larger than the {limit} byte limit"
        )
        self.file_name = file_name
        self.size = size
        self.limit = limit


class PersistenceFailure(RuntimeError):
    """Storing a file or writing the project back failed."""


@dataclass(frozen=True)
class EnqueueResult:
    """Outcome of admitting a batch of files."""

    admitted: tuple[UploadQueueItem, ...]
    rejected: tuple[FileTooLargeError, ...]
