"""Document and OCR data types plus the OCR collaborator contract."""

from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, PositiveFloat

from docscan.core.result import Outcome

DocumentContent = bytes | bytearray | memoryview | str | Path


class DocumentFormat(StrEnum):
    """Physical representation of a submitted document."""

    IMAGE = "image"
    PDF = "pdf"


class ScannerOptions(BaseModel):
    """Per-document processing options forwarded to the OCR collaborator."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    enhance_image: bool | None = None
    detect_orientation: bool | None = None
    timeout: PositiveFloat | None = None
    force_ocr: bool | None = None


@dataclass(frozen=True)
class Document:
    """A document submitted for scanning.

    ``content`` is either the raw bytes of the document or a path to it.
    """

    content: DocumentContent
    type: DocumentFormat = DocumentFormat.IMAGE
    name: str | None = None
    mime_type: str | None = None
    options: ScannerOptions | dict[str, Any] | None = None

    @property
    def display_name(self) -> str:
        if self.name:
            return self.name
        if isinstance(self.content, str | Path):
            return Path(self.content).name
        return "document"

    def read_bytes(self) -> bytes:
        """Return the document content as bytes, reading it from disk if needed."""
        if isinstance(self.content, str | Path):
            return Path(self.content).read_bytes()
        return bytes(self.content)

    def resolved_mime_type(self) -> str:
        """Return the declared MIME type or the default for the document format."""
        if self.mime_type:
            return self.mime_type.lower()
        return "application/pdf" if self.type == DocumentFormat.PDF else "image/jpeg"


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned bounding box for a recognized region."""

    x: int
    y: int
    width: int
    height: int


@dataclass(frozen=True)
class RecognizedPage:
    """Text recognized on one physical page."""

    text: str
    confidence: float
    page_number: int | None = None
    bounding_box: BoundingBox | None = None


class OCRProvider(Protocol):
    """Converts documents into recognized pages.

    The outer list of a successful result is indexed by document, the
    inner list by page.
    """

    async def process_documents(
        self, documents: Sequence[Document]
    ) -> Outcome[list[list[RecognizedPage]], Exception]: ...
