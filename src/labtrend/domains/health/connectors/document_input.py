"""Import inputs — pasted text or an uploaded lab document.

PDFs and images are sent to the extraction collaborator as base64
attachments; any other file (CSV, TXT, exported reports) is read as text.
"""

from __future__ import annotations

import base64
import logging
import mimetypes
from dataclasses import dataclass
from pathlib import Path

from labtrend.core.llm.provider import DocumentAttachment

logger = logging.getLogger(__name__)

MANUAL_TEXT_LABEL = "Manual Text Input"

BINARY_MIME_TYPES = frozenset({
    "application/pdf",
    "image/png",
    "image/jpeg",
    "image/gif",
    "image/webp",
})


class DocumentInputError(ValueError):
    """Raised when an import input is empty or cannot be read."""


@dataclass(frozen=True)
class ExtractionInput:
    """Either ``text`` or ``attachment`` is set, never both."""

    source_label: str
    text: str | None = None
    attachment: DocumentAttachment | None = None

    @classmethod
    def from_text(cls, text: str, source_label: str = MANUAL_TEXT_LABEL) -> ExtractionInput:
        if not text or not text.strip():
            raise DocumentInputError("No text provided")
        return cls(source_label=source_label or MANUAL_TEXT_LABEL, text=text)

    @classmethod
    def from_bytes(
        cls,
        data: bytes,
        mime_type: str,
        source_label: str,
    ) -> ExtractionInput:
        if not data:
            raise DocumentInputError(f"{source_label} is empty")
        if mime_type in BINARY_MIME_TYPES:
            encoded = base64.b64encode(data).decode("ascii")
            return cls(
                source_label=source_label,
                attachment=DocumentAttachment(mime_type=mime_type, data=encoded),
            )
        return cls.from_text(data.decode("utf-8", errors="replace"), source_label)

    @classmethod
    def from_file(cls, path: str | Path, source_label: str = "") -> ExtractionInput:
        """Read a document from disk; the file name is the default label.

        Raises:
            DocumentInputError: If the file is missing, unreadable or empty.
        """
        file_path = Path(path).expanduser()
        try:
            data = file_path.read_bytes()
        except OSError as exc:
            raise DocumentInputError(f"Cannot read {file_path}: {exc}") from exc

        mime_type, _ = mimetypes.guess_type(file_path.name)
        logger.info("Read %s (%d bytes, %s)", file_path.name, len(data), mime_type or "unknown type")
        return cls.from_bytes(data, mime_type or "text/plain", source_label or file_path.name)
