import asyncio
import io
import threading

import pytest

from conftest import FakeSummarizer
from dal.content_dal import ContentDAL
from models.content_record import STATUS_COMPLETE, STATUS_FAILED, STATUS_PROCESSING
from services.ingestion_pipeline import VIDEO_PLACEHOLDER_SUMMARY, IngestionPipeline
from utils.errors import ProcessingError, ValidationError


class BytesStream:
    def __init__(self, data: bytes):
        self._buffer = io.BytesIO(data)

    async def read(self, size: int = -1) -> bytes:
        return self._buffer.read(size)


@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path / "uploads"


def _pipeline(content_dal, summarizer, upload_dir, max_bytes=1024):
    return IngestionPipeline(content_dal, summarizer, upload_dir=upload_dir, max_upload_bytes=max_bytes)


def test_pdf_upload_completes_with_summary(content_dal: ContentDAL, upload_dir):
    summarizer = FakeSummarizer(result="S")
    pipeline = _pipeline(content_dal, summarizer, upload_dir)

    async def scenario():
        record = await pipeline.accept(1, "a.pdf", "application/pdf", BytesStream(b"%PDF-"))
        initial_status = record.status
        await pipeline.task_for(record.id)
        return record, initial_status, await content_dal.get_content(record.id)

    record, initial_status, stored = asyncio.run(scenario())

    assert initial_status == STATUS_PROCESSING
    assert record.size_bytes == 5
    assert record.filename == "a.pdf"
    assert stored.status == STATUS_COMPLETE
    assert stored.summary == "S"
    assert summarizer.calls == [record.storage_path]
    with open(record.storage_path, "rb") as fh:
        assert fh.read() == b"%PDF-"


def test_accept_returns_before_processing_finishes(content_dal: ContentDAL, upload_dir):
    gate = threading.Event()
    pipeline = _pipeline(content_dal, FakeSummarizer(result="later", gate=gate), upload_dir)

    async def scenario():
        record = await pipeline.accept(1, "a.pdf", "application/pdf", BytesStream(b"%PDF-"))
        await asyncio.sleep(0.05)
        during = await content_dal.get_content(record.id)
        pending = pipeline.pending()
        gate.set()
        await pipeline.wait_idle(timeout=5)
        return record, during, pending, await content_dal.get_content(record.id)

    record, during, pending, after = asyncio.run(scenario())

    assert during.status == STATUS_PROCESSING
    assert pending == [record.id]
    assert after.status == STATUS_COMPLETE
    assert pipeline.pending() == []


@pytest.mark.parametrize("error", [ProcessingError("provider down"), RuntimeError("boom")])
def test_summarizer_failure_marks_record_failed(content_dal: ContentDAL, upload_dir, error):
    pipeline = _pipeline(content_dal, FakeSummarizer(error=error), upload_dir)

    async def scenario():
        record = await pipeline.accept(1, "a.pdf", "application/pdf", BytesStream(b"%PDF-"))
        status = await pipeline.task_for(record.id)
        return status, await content_dal.get_content(record.id)

    status, stored = asyncio.run(scenario())

    assert status == STATUS_FAILED
    assert stored.status == STATUS_FAILED
    assert stored.summary is None


def test_empty_summary_counts_as_failure(content_dal: ContentDAL, upload_dir):
    pipeline = _pipeline(content_dal, FakeSummarizer(result="   "), upload_dir)

    async def scenario():
        record = await pipeline.accept(1, "a.pdf", "application/pdf", BytesStream(b"%PDF-"))
        await pipeline.wait_idle()
        return await content_dal.get_content(record.id)

    assert asyncio.run(scenario()).status == STATUS_FAILED


def test_video_upload_gets_placeholder_without_summarizer(content_dal: ContentDAL, upload_dir):
    summarizer = FakeSummarizer(error=ProcessingError("must not be called"))
    pipeline = _pipeline(content_dal, summarizer, upload_dir)

    async def scenario():
        record = await pipeline.accept(1, "clip.mp4", "video/mp4", BytesStream(b"\x00\x00\x00\x18ftyp"))
        await pipeline.wait_idle()
        return await content_dal.get_content(record.id)

    stored = asyncio.run(scenario())

    assert stored.media_type == "video"
    assert stored.status == STATUS_COMPLETE
    assert stored.summary == VIDEO_PLACEHOLDER_SUMMARY
    assert summarizer.calls == []


@pytest.mark.parametrize(
    "filename, content_type, data, status_code",
    [
        ("a.png", "image/png", b"png", 415),
        ("big.pdf", "application/pdf", b"x" * 2048, 413),
        ("empty.pdf", "application/pdf", b"", 400),
    ],
)
def test_rejected_uploads_create_no_record_and_leave_no_file(
    content_dal: ContentDAL, upload_dir, filename, content_type, data, status_code
):
    pipeline = _pipeline(content_dal, FakeSummarizer(), upload_dir, max_bytes=1024)

    async def scenario():
        with pytest.raises(ValidationError) as excinfo:
            await pipeline.accept(1, filename, content_type, BytesStream(data))
        return excinfo.value, await content_dal.list_for_owner(1)

    error, records = asyncio.run(scenario())

    assert error.status_code == status_code
    assert records == []
    assert not upload_dir.exists() or list(upload_dir.iterdir()) == []


def test_upload_at_exact_ceiling_is_accepted(content_dal: ContentDAL, upload_dir):
    pipeline = _pipeline(content_dal, FakeSummarizer(), upload_dir, max_bytes=1024)

    async def scenario():
        record = await pipeline.accept(1, "edge.pdf", "application/pdf", BytesStream(b"x" * 1024))
        await pipeline.wait_idle()
        return record

    assert asyncio.run(scenario()).size_bytes == 1024


def test_second_submit_for_running_record_is_refused(content_dal: ContentDAL, upload_dir):
    gate = threading.Event()
    pipeline = _pipeline(content_dal, FakeSummarizer(gate=gate), upload_dir)

    async def scenario():
        record = await pipeline.accept(1, "a.pdf", "application/pdf", BytesStream(b"%PDF-"))
        with pytest.raises(RuntimeError):
            pipeline.submit(record)
        gate.set()
        await pipeline.wait_idle(timeout=5)

    asyncio.run(scenario())


def test_concurrent_uploads_process_independently(content_dal: ContentDAL, upload_dir):
    class PerFileSummarizer:
        async def summarize(self, path: str) -> str:
            await asyncio.sleep(0.01)
            if path.endswith("_bad.pdf"):
                raise ProcessingError("unreadable")
            return f"summary of {path.rsplit('_', 1)[-1]}"

    pipeline = _pipeline(content_dal, PerFileSummarizer(), upload_dir)

    async def scenario():
        names = ["one.pdf", "bad.pdf", "two.pdf"]
        records = [
            await pipeline.accept(1, name, "application/pdf", BytesStream(b"%PDF-")) for name in names
        ]
        await pipeline.wait_idle(timeout=5)
        return {r.filename: await content_dal.get_content(r.id) for r in records}

    stored = asyncio.run(scenario())

    assert stored["one.pdf"].summary == "summary of one.pdf"
    assert stored["two.pdf"].status == STATUS_COMPLETE
    assert stored["bad.pdf"].status == STATUS_FAILED


def test_shutdown_cancels_stuck_tasks_leaving_record_processing(content_dal: ContentDAL, upload_dir):
    pipeline = _pipeline(content_dal, FakeSummarizer(gate=threading.Event()), upload_dir)

    async def scenario():
        record = await pipeline.accept(1, "a.pdf", "application/pdf", BytesStream(b"%PDF-"))
        await pipeline.shutdown(timeout=0.05)
        return await content_dal.get_content(record.id)

    assert asyncio.run(scenario()).status == STATUS_PROCESSING
