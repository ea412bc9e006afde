"""
Protocols for collaborators the ingestion pipeline consumes.

The pipeline depends on these shapes rather than on the OpenAI-backed
implementation, so tests can pass simple fakes without network calls.
"""

from __future__ import annotations

from typing import Protocol


class Summarizer(Protocol):
    async def summarize(self, path: str) -> str:
        """Return summary text for the document at `path`.

        Implementations raise `utils.errors.ProcessingError` on failure.
        """
        ...
