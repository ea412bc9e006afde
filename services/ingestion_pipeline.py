"""Asynchronous ingestion of uploaded documents and videos.

`IngestionPipeline.accept` validates and stores an upload, creates its
CONTENT row in `processing`, and hands the row to a background task before
returning. The task moves the row to `complete` or `failed` exactly once;
failures are logged and recorded on the row, never raised to the uploader.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Dict, List, Optional, Protocol
from uuid import uuid4

import aiofiles
import aiofiles.os

from dal.content_dal import ContentDAL
from models.content_record import (
    MEDIA_VIDEO,
    STATUS_COMPLETE,
    STATUS_FAILED,
    STATUS_PROCESSING,
    ContentRecord,
)
from services.interfaces import Summarizer
from utils.errors import ProcessingError, ValidationError
from utils.media_validation import resolve_media_type, safe_filename

LOGGER = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024
VIDEO_PLACEHOLDER_SUMMARY = "Video summary is not available in this demo version."


class AsyncReadable(Protocol):
    async def read(self, size: int = -1) -> bytes: ...


class IngestionPipeline:
    """Validate, persist, and process uploaded content in the background."""

    def __init__(
        self,
        content_dal: ContentDAL,
        summarizer: Summarizer,
        upload_dir: Path | str,
        max_upload_bytes: int,
    ) -> None:
        self.content_dal = content_dal
        self.summarizer = summarizer
        self.upload_dir = Path(upload_dir)
        self.max_upload_bytes = max_upload_bytes
        self._tasks: Dict[int, asyncio.Task] = {}

    async def accept(
        self,
        owner_id: int,
        filename: Optional[str],
        content_type: Optional[str],
        stream: AsyncReadable,
    ) -> ContentRecord:
        """Store an upload, create its record, and schedule processing.

        Returns the record as created (status `processing`) without waiting
        for processing to finish.

        Raises:
            ValidationError: For unsupported types (415), oversize (413), or
                empty (400) uploads. No record is created in these cases.
        """
        media_type = resolve_media_type(content_type, filename)
        display_name = safe_filename(filename)
        storage_path, size = await self._store(display_name, stream)

        record = await self.content_dal.create_content(
            ContentRecord(
                id=None,
                owner_id=owner_id,
                filename=filename or display_name,
                media_type=media_type,
                storage_path=str(storage_path),
                size_bytes=size,
                status=STATUS_PROCESSING,
            )
        )
        LOGGER.info("Accepted %s upload %s (%d bytes) as content %s", media_type, display_name, size, record.id)
        self.submit(record)
        return record

    def submit(self, record: ContentRecord) -> asyncio.Task:
        """Start the processing task for a record.

        Raises:
            RuntimeError: If a task for the same record is still running.
        """
        if record.id is None:
            raise ValueError("Content record must be persisted before processing.")
        existing = self._tasks.get(record.id)
        if existing is not None and not existing.done():
            raise RuntimeError(f"Content {record.id} is already being processed")

        task = asyncio.create_task(self._process(record), name=f"ingest-content-{record.id}")
        self._tasks[record.id] = task
        task.add_done_callback(lambda done, content_id=record.id: self._forget(content_id, done))
        return task

    def task_for(self, content_id: int) -> Optional[asyncio.Task]:
        return self._tasks.get(content_id)

    def pending(self) -> List[int]:
        """Ids of records whose processing task has not finished."""
        return [content_id for content_id, task in self._tasks.items() if not task.done()]

    async def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """Wait for all outstanding tasks. Returns False if the timeout expired first."""
        tasks = [task for task in self._tasks.values() if not task.done()]
        if not tasks:
            return True
        _, still_running = await asyncio.wait(tasks, timeout=timeout)
        return not still_running

    async def shutdown(self, timeout: float = 5.0) -> None:
        """Give running tasks `timeout` seconds, then cancel the rest.

        Cancelled records stay in `processing`.
        """
        if await self.wait_idle(timeout):
            return
        remaining = [task for task in self._tasks.values() if not task.done()]
        LOGGER.warning("Cancelling %d unfinished ingestion task(s) on shutdown", len(remaining))
        for task in remaining:
            task.cancel()
        await asyncio.gather(*remaining, return_exceptions=True)

    async def _store(self, display_name: str, stream: AsyncReadable) -> tuple[Path, int]:
        """Write the upload under `upload_dir`, enforcing the size ceiling while streaming."""
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        path = self.upload_dir / f"{uuid4().hex}_{display_name}"
        size = 0
        try:
            async with aiofiles.open(path, "wb") as out:
                while True:
                    chunk = await stream.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    size += len(chunk)
                    if size > self.max_upload_bytes:
                        raise ValidationError(
                            f"File exceeds the {self.max_upload_bytes} byte upload limit.",
                            status_code=413,
                        )
                    await out.write(chunk)
            if size == 0:
                raise ValidationError("Uploaded file is empty.")
        except BaseException:
            if await aiofiles.os.path.exists(path):
                await aiofiles.os.remove(path)
            raise
        return path, size

    async def _process(self, record: ContentRecord) -> str:
        """Drive one record to a terminal state and return that state."""
        summary: Optional[str] = None
        try:
            if record.media_type == MEDIA_VIDEO:
                summary = VIDEO_PLACEHOLDER_SUMMARY
            else:
                summary = await self.summarizer.summarize(record.storage_path)
                if not summary or not summary.strip():
                    raise ProcessingError("Summarizer returned an empty summary")
            status = STATUS_COMPLETE
        except ProcessingError as exc:
            LOGGER.error("Processing content %s failed: %s", record.id, exc)
            summary, status = None, STATUS_FAILED
        except Exception:
            LOGGER.exception("Unexpected error while processing content %s", record.id)
            summary, status = None, STATUS_FAILED

        if not await self.content_dal.finish_processing(record.id, status, summary):
            LOGGER.warning("Content %s was not in processing; %s result discarded", record.id, status)
        else:
            LOGGER.info("Content %s -> %s", record.id, status)
        return status

    def _forget(self, content_id: int, task: asyncio.Task) -> None:
        if self._tasks.get(content_id) is task:
            del self._tasks[content_id]
        if not task.cancelled() and task.exception() is not None:
            LOGGER.error("Ingestion task for content %s crashed: %r", content_id, task.exception())
