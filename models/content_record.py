from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

STATUS_PROCESSING = "processing"
STATUS_COMPLETE = "complete"
STATUS_FAILED = "failed"
TERMINAL_STATUSES = frozenset({STATUS_COMPLETE, STATUS_FAILED})

MEDIA_PDF = "pdf"
MEDIA_VIDEO = "video"


@dataclass
class ContentRecord:
    """In-memory representation of a row in the CONTENT table.

    Attributes:
        id: Primary key (None for new records).
        owner_id: Id of the uploading user.
        filename: Original client-side filename.
        media_type: Either `pdf` or `video`.
        storage_path: Location of the stored artifact on disk.
        size_bytes: Size of the stored artifact.
        status: One of `processing`, `complete`, `failed`. Records are inserted
            directly in `processing`; the `uploaded` state is never stored.
        summary: Summary text once processing completes, otherwise None.
        created_at: Unix timestamp (seconds) when the row was inserted.
        updated_at: Unix timestamp (seconds) of the last status change.
    """

    id: Optional[int]
    owner_id: int
    filename: str
    media_type: str
    storage_path: str
    size_bytes: int
    status: str = STATUS_PROCESSING
    summary: Optional[str] = None
    created_at: Optional[int] = None
    updated_at: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def public_dict(self) -> Dict[str, Any]:
        """Return the record without its server-side storage location."""
        data = self.to_dict()
        data.pop("storage_path", None)
        return data
