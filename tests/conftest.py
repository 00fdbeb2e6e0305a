"""Shared test fixtures for the document scanner test suite."""

import io
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

import numpy as np
import pytest
from PIL import Image

from docscan.core.errors import ExtractionError, RecognitionError
from docscan.core.result import Err, Ok, Outcome
from docscan.extraction.types import ExtractionRequest, ExtractionResult, ProviderMetadata
from docscan.ocr.types import Document, RecognizedPage

CHECK_TEXT = """First Federal Credit Union
PAY TO THE ORDER OF Maria Alvarez $ 1,482.16
One thousand four hundred eighty-two and 16/100 DOLLARS
DATE 2025-03-14
⑆267084131⑆ ⑈4418203⑈ ⑇3307⑇"""


class FakeOCRProvider:
    """OCR collaborator returning canned pages and recording every call."""

    def __init__(
        self,
        pages: list[list[RecognizedPage]] | None = None,
        error: Exception | None = None,
    ) -> None:
        self.pages = pages if pages is not None else [[RecognizedPage(CHECK_TEXT, 0.95, 1)]]
        self.error = error
        self.calls: list[list[Document]] = []

    async def process_documents(
        self, documents: Sequence[Document]
    ) -> Outcome[list[list[RecognizedPage]], Exception]:
        self.calls.append(list(documents))
        if self.error is not None:
            return Err(self.error)
        return Ok(self.pages)


class FakeJsonExtractor:
    """Extraction collaborator returning canned JSON and recording requests."""

    def __init__(
        self,
        json: dict[str, Any] | None = None,
        finish_reason: str | None = "stop",
        error: Exception | None = None,
    ) -> None:
        self.json = json if json is not None else {}
        self.finish_reason = finish_reason
        self.error = error
        self.requests: list[ExtractionRequest] = []

    async def extract(
        self, request: ExtractionRequest
    ) -> Outcome[ExtractionResult, Exception]:
        self.requests.append(request)
        if self.error is not None:
            return Err(self.error)
        return Ok(
            ExtractionResult(
                json=self.json,
                confidence=1.0 if self.finish_reason == "stop" else 0.75,
                metadata=ProviderMetadata(finish_reason=self.finish_reason),
            )
        )


@pytest.fixture
def check_json() -> dict[str, Any]:
    """A plausible, grounded check extraction."""
    return {
        "checkNumber": "3307",
        "date": "2025-03-14",
        "payee": "Maria Alvarez",
        "amount": 1482.16,
        "amountText": "One thousand four hundred eighty-two and 16/100",
        "bankName": "First Federal Credit Union",
        "routingNumber": "267084131",
        "accountNumber": "4418203",
    }


@pytest.fixture
def receipt_json() -> dict[str, Any]:
    """A plausible, grounded receipt extraction."""
    return {
        "merchant": {
            "name": "Blue Heron Grocery",
            "address": "88 Harbor Rd, Portland ME",
            "phone": "207-555-0142",
        },
        "receiptNumber": "A-20931",
        "timestamp": "2025-03-14T17:42:00",
        "totals": {"subtotal": 37.3, "tax": 2.24, "total": 39.54},
        "currency": "usd",
        "items": [
            {"description": "Organic apples 2lb", "quantity": 1, "totalPrice": 6.98},
            {"description": "Sourdough loaf", "quantity": 1, "totalPrice": 5.49},
            {"description": "Olive oil 1L", "quantity": 1, "totalPrice": 24.83},
        ],
    }


@pytest.fixture
def ocr_factory() -> Callable[..., FakeOCRProvider]:
    """Build fake OCR collaborators."""
    return FakeOCRProvider


@pytest.fixture
def extractor_factory() -> Callable[..., FakeJsonExtractor]:
    """Build fake extraction collaborators."""
    return FakeJsonExtractor


@pytest.fixture
def recognition_error() -> RecognitionError:
    return RecognitionError("service unavailable")


@pytest.fixture
def extraction_error() -> ExtractionError:
    return ExtractionError("Empty response from Mistral API")


@pytest.fixture
def png_bytes() -> bytes:
    """Encode a small synthetic image as PNG."""
    image = np.zeros((100, 200, 3), dtype=np.uint8)
    image[20:80, 40:160] = 255
    buf = io.BytesIO()
    Image.fromarray(image).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def config_dir(project_root: Path) -> Path:
    """Return the configs directory path."""
    return project_root / "configs"
