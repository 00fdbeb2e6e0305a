"""Hosted OCR collaborator backed by the Mistral OCR API."""

import base64
import time
from collections.abc import Sequence
from typing import Any

import httpx

from docscan.core.errors import RecognitionError
from docscan.core.result import Err, Ok, Outcome
from docscan.utils.logger import get_logger

from .types import BoundingBox, Document, DocumentFormat, RecognizedPage

logger = get_logger(__name__)


class MistralOCRProvider:
    """OCR provider calling ``POST /v1/ocr`` on the Mistral API.

    The service returns markdown per page and no recognition confidence,
    so every page is reported with confidence 1.0.

    Args:
        api_key: Mistral API key.
        model: OCR model name.
        api_base: Base URL of the Mistral API.
        timeout: Request timeout in seconds.
        transport: Optional httpx transport, used by tests.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "mistral-ocr-latest",
        api_base: str = "https://api.mistral.ai",
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self.model = model
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def process_documents(
        self, documents: Sequence[Document]
    ) -> Outcome[list[list[RecognizedPage]], Exception]:
        """Recognize documents one after another.

        Args:
            documents: Documents to recognize.

        Returns:
            Pages per document, or the first failure.
        """
        results: list[list[RecognizedPage]] = []
        async with httpx.AsyncClient(
            base_url=self.api_base,
            timeout=self.timeout,
            headers={"Authorization": f"Bearer {self._api_key}"},
            transport=self._transport,
        ) as client:
            for document in documents:
                try:
                    pages = await self._process_document(client, document)
                except httpx.HTTPError as exc:
                    logger.warning(
                        "Mistral OCR request failed for %s: %s",
                        document.display_name,
                        exc,
                    )
                    return Err(RecognitionError(f"Mistral OCR request failed: {exc}"))
                except (OSError, ValueError, KeyError, TypeError) as exc:
                    logger.warning(
                        "Mistral OCR returned an unusable response for %s: %s",
                        document.display_name,
                        exc,
                    )
                    return Err(RecognitionError(f"Invalid OCR response: {exc}"))
                results.append(pages)
        return Ok(results)

    async def _process_document(
        self, client: httpx.AsyncClient, document: Document
    ) -> list[RecognizedPage]:
        encoded = base64.b64encode(document.read_bytes()).decode("ascii")
        data_url = f"data:{document.resolved_mime_type()};base64,{encoded}"
        if document.type == DocumentFormat.PDF:
            chunk = {"type": "document_url", "document_url": data_url}
        else:
            chunk = {"type": "image_url", "image_url": data_url}

        start = time.monotonic()
        response = await client.post(
            "/v1/ocr",
            json={
                "model": self.model,
                "document": chunk,
                "include_image_base64": False,
            },
        )
        response.raise_for_status()
        logger.debug(
            "Mistral OCR answered in %.0f ms for %s",
            (time.monotonic() - start) * 1000,
            document.display_name,
        )
        return [self._to_page(page) for page in response.json()["pages"]]

    def _to_page(self, page: dict[str, Any]) -> RecognizedPage:
        dimensions = page.get("dimensions")
        bounding_box = None
        if dimensions:
            bounding_box = BoundingBox(
                x=0,
                y=0,
                width=int(dimensions["width"]),
                height=int(dimensions["height"]),
            )
        return RecognizedPage(
            text=str(page.get("markdown", "")),
            confidence=1.0,
            page_number=int(page.get("index", 0)) + 1,
            bounding_box=bounding_box,
        )
