"""Bulk media upload queue.

Files selected by an admin are admitted in a batch, then stored one at a time
by a single consumer task. Each stored file becomes a ``MediaItem`` at the
front of the active weekly update, and the whole project is written back.
Per-item status is observable through ``subscribe``; once every item has
settled the queue clears itself after ``clear_seconds``.
"""

import asyncio
import contextlib
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from uuid import uuid4

from progress_portal.domain.projects import MediaItem, MediaKind, Project
from progress_portal.domain.uploads import (
    EnqueueResult,
    FileTooLargeError,
    LocalFile,
    PersistenceFailure,
    UploadQueueItem,
    UploadStatus,
)
from progress_portal.services.projects import (
    ContentStore,
    new_media_id,
    prepend_media,
)

MAX_UPLOAD_BYTES = 200 * 1024 * 1024

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadTarget:
    """The project and update that stored files are attached to."""

    project_id: str
    update_index: int


TargetProvider = Callable[[], UploadTarget | None]
QueueListener = Callable[[tuple[UploadQueueItem, ...]], None]


def media_kind_for(content_type: str) -> MediaKind:
    """Classify an uploaded file by its declared content type."""
    return MediaKind.VIDEO if content_type.startswith("video/") else MediaKind.PHOTO


def build_media_item(file: LocalFile, locator: str) -> MediaItem:
    """Describe a stored file as a media item."""
    kind = media_kind_for(file.content_type)
    return MediaItem(
        id=new_media_id(),
        type=kind,
        url=locator,
        thumbnail=None if kind == MediaKind.VIDEO else locator,
        description=file.name,
    )


@dataclass
class UploadPipeline:
    """Single-consumer FIFO pipeline from local files to project media."""

    store: ContentStore
    target: TargetProvider
    max_file_bytes: int = MAX_UPLOAD_BYTES
    settle_seconds: float = 0.5
    clear_seconds: float = 3.0
    _items: list[UploadQueueItem] = field(default_factory=list, init=False)
    _listeners: list[QueueListener] = field(default_factory=list, init=False)
    _channel: asyncio.Queue[str] = field(init=False)
    _target_changed: asyncio.Event = field(init=False)
    _worker: asyncio.Task[None] | None = field(default=None, init=False)
    _clear_task: asyncio.Task[None] | None = field(default=None, init=False)

    def __post_init__(self) -> None:
        self._channel = asyncio.Queue()
        self._target_changed = asyncio.Event()

    def snapshot(self) -> tuple[UploadQueueItem, ...]:
        """Return the current queue in insertion order."""
        return tuple(self._items)

    def subscribe(self, listener: QueueListener) -> Callable[[], None]:
        """Call ``listener`` with a snapshot after every queue change."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def enqueue(self, files: Iterable[LocalFile]) -> EnqueueResult:
        """Admit a batch of files; oversized files are rejected one by one.

        Must be called from a running event loop. Admitted files are queued
        after anything already waiting and a pending auto-clear is cancelled.
        """
        admitted: list[UploadQueueItem] = []
        rejected: list[FileTooLargeError] = []
        for file in files:
            size = file.byte_size
            if size > self.max_file_bytes:
                _logger.warning(
                    "Rejected oversized upload",
                    extra={"file_name": file.name, "size": size},
                )
                rejected.append(FileTooLargeError(file.name, size, self.max_file_bytes))
                continue
            admitted.append(UploadQueueItem(id=str(uuid4()), file=file))

        if admitted:
            self._cancel_clear()
            self._items.extend(admitted)
            for item in admitted:
                self._channel.put_nowait(item.id)
            self._ensure_worker()
            self._notify()
        return EnqueueResult(admitted=tuple(admitted), rejected=tuple(rejected))

    def notify_target_changed(self) -> None:
        """Wake a worker that is stalled waiting for an active project."""
        self._target_changed.set()

    async def drain(self) -> None:
        """Wait until every admitted item has been processed."""
        await self._channel.join()

    async def close(self) -> None:
        """Stop the worker and any scheduled clear."""
        self._cancel_clear()
        if self._worker is not None:
            self._worker.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._worker
            self._worker = None

    def _ensure_worker(self) -> None:
        if self._worker is None or self._worker.done():
            self._worker = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        while True:
            item_id = await self._channel.get()
            try:
                await self._process(item_id)
                await asyncio.sleep(self.settle_seconds)
                self._schedule_clear_if_settled()
            finally:
                self._channel.task_done()

    async def _process(self, item_id: str) -> None:
        target = await self._wait_for_target()
        item = self._set_status(item_id, UploadStatus.UPLOADING)
        if item is None:
            return
        try:
            locator = await asyncio.to_thread(
                self.store.upload_blob, item.file, target.project_id
            )
            media = build_media_item(item.file, locator)
            await asyncio.to_thread(self._attach, target, media)
        except Exception:
            _logger.exception(
                "Upload failed",
                extra={"file_name": item.file.name, "project_id": target.project_id},
            )
            self._set_status(item_id, UploadStatus.ERROR)
            return
        self._set_status(item_id, UploadStatus.COMPLETED, progress=100)

    def _attach(self, target: UploadTarget, media: MediaItem) -> Project:
        project = self.store.get(target.project_id)
        if project is None:
            raise PersistenceFailure(f"Project {target.project_id} no longer exists")
        if not 0 <= target.update_index < len(project.updates):
            raise PersistenceFailure(
                f"Project {target.project_id} has no update {target.update_index}"
            )
        refreshed = prepend_media(project, target.update_index, media)
        self.store.put(refreshed)
        return refreshed

    async def _wait_for_target(self) -> UploadTarget:
        while (target := self.target()) is None:
            self._target_changed.clear()
            await self._target_changed.wait()
        return target

    def _set_status(
        self, item_id: str, status: UploadStatus, progress: int | None = None
    ) -> UploadQueueItem | None:
        for index, item in enumerate(self._items):
            if item.id == item_id:
                updated = item.transition(status, progress)
                self._items[index] = updated
                self._notify()
                return updated
        return None

    def _schedule_clear_if_settled(self) -> None:
        if not self._items or not all(item.is_terminal for item in self._items):
            return
        self._cancel_clear()
        self._clear_task = asyncio.get_running_loop().create_task(
            self._clear_after_delay()
        )

    async def _clear_after_delay(self) -> None:
        await asyncio.sleep(self.clear_seconds)
        if all(item.is_terminal for item in self._items):
            self._items.clear()
            self._notify()
        self._clear_task = None

    def _cancel_clear(self) -> None:
        if self._clear_task is not None and not self._clear_task.done():
            self._clear_task.cancel()
        self._clear_task = None

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)
