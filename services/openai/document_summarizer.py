"""Document summarization via the OpenAI Responses API.

The stored PDF is attached to the request as an `input_file` data URL so
no local text extraction is needed.
"""

import base64
import logging
import time
from pathlib import Path

import aiofiles
from openai import AsyncOpenAI

from services.openai.response_parser import extract_text, extract_usage
from utils.errors import ProcessingError

LOGGER = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a study assistant on a peer-to-peer skill exchange platform. "
    "Summarize the provided document so a learner can decide whether it is "
    "useful to them."
)
USER_PROMPT = (
    "Write a concise summary of this document: a short overview paragraph "
    "followed by the key points as a bulleted list. Return only the summary."
)


class DocumentSummarizer:
    """Produce text summaries of uploaded PDF documents."""

    def __init__(self, client: AsyncOpenAI, model: str = "gpt-5", max_output_tokens: int = 1500) -> None:
        if client is None:
            raise ValueError("OpenAI AsyncOpenAI client is required.")
        self.client = client
        self.model = model
        self.max_output_tokens = max_output_tokens

    async def summarize(self, path: str) -> str:
        """Return a summary of the PDF stored at `path`.

        Raises:
            ProcessingError: If the file cannot be read, the API call fails,
                or the model returns no text.
        """
        start = time.time()
        file_path = Path(path)
        try:
            async with aiofiles.open(file_path, "rb") as fh:
                data = await fh.read()
        except OSError as exc:
            raise ProcessingError(f"Unable to read stored document {file_path.name}") from exc
        if not data:
            raise ProcessingError(f"Stored document {file_path.name} is empty")

        encoded = base64.b64encode(data).decode("utf-8")
        try:
            response = await self.client.responses.create(
                model=self.model,
                input=[
                    {
                        "type": "message",
                        "role": "system",
                        "content": [{"type": "input_text", "text": SYSTEM_PROMPT}],
                    },
                    {
                        "type": "message",
                        "role": "user",
                        "content": [
                            {
                                "type": "input_file",
                                "filename": file_path.name,
                                "file_data": f"data:application/pdf;base64,{encoded}",
                            },
                            {"type": "input_text", "text": USER_PROMPT},
                        ],
                    },
                ],
                max_output_tokens=self.max_output_tokens,
            )
        except Exception as exc:
            LOGGER.error("OpenAI Responses API error while summarizing %s: %s", file_path.name, exc)
            raise ProcessingError("Summarization request failed") from exc

        summary = extract_text(response).strip()
        if not summary:
            raise ProcessingError("Summarization response did not include text")

        usage = extract_usage(response)
        LOGGER.info(
            "Summarized %s in %.3fs (input_tokens=%s, output_tokens=%s)",
            file_path.name,
            time.time() - start,
            usage["input_tokens"],
            usage["output_tokens"],
        )
        return summary
