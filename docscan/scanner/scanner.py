"""Top-level scan orchestration.

A scan runs three phases in order: validate the input, recognize its
text, extract the family's fields. Each phase failure is returned as an
``Err`` carrying a phase prefix, and nothing after the failed phase runs.
"""

import time
import uuid
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from docscan.core.result import Err, Ok, Outcome
from docscan.extraction.confidence import blend_overall_confidence, clamp_confidence
from docscan.extraction.field_extractor import FieldExtractor
from docscan.extraction.schemas import ExtractedRecord
from docscan.ocr.types import Document, DocumentFormat, OCRProvider
from docscan.utils.logger import get_logger
from docscan.validation.input_validator import InputValidator

logger = get_logger(__name__)

RecordT = TypeVar("RecordT", bound=ExtractedRecord)


@dataclass(frozen=True)
class ProcessingResult(Generic[RecordT]):
    """Final artifact of a successful scan.

    Attributes:
        record: Extracted, detected record.
        ocr_confidence: Confidence of the page the text came from.
        extraction_confidence: Confidence of the extracted record.
        overall_confidence: ``0.6 * ocr + 0.4 * extraction``, rounded.
        raw_text: OCR text exactly as it was sent for extraction.
    """

    record: RecordT
    ocr_confidence: float
    extraction_confidence: float
    overall_confidence: float
    raw_text: str

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict using camelCase field names."""
        return {
            "record": self.record.model_dump(mode="json", by_alias=True, exclude_none=True),
            "ocrConfidence": self.ocr_confidence,
            "extractionConfidence": self.extraction_confidence,
            "overallConfidence": self.overall_confidence,
            "rawText": self.raw_text,
        }


class DocumentScanner(Generic[RecordT]):
    """Scans documents of one family into typed records.

    Args:
        document_type: Family name, used in logs.
        ocr_provider: OCR collaborator.
        field_extractor: Extractor for the family.
        input_validator: Validator for the family's input.
    """

    def __init__(
        self,
        document_type: str,
        ocr_provider: OCRProvider,
        field_extractor: FieldExtractor[RecordT],
        input_validator: InputValidator,
    ) -> None:
        self.document_type = document_type
        self.ocr_provider = ocr_provider
        self.field_extractor = field_extractor
        self.input_validator = input_validator

    async def process_document(
        self, document: Document
    ) -> Outcome[ProcessingResult[RecordT], str]:
        """Scan a single document.

        Args:
            document: Document to scan.

        Returns:
            The processing result, or a message naming the failed phase.
        """
        scan_id = uuid.uuid4().hex[:8]
        start = time.monotonic()
        logger.info(
            "[%s] Scanning %s as %s", scan_id, document.display_name, self.document_type
        )

        validated = self.input_validator.validate(document)
        if isinstance(validated, Err):
            logger.info("[%s] Validation failed: %s", scan_id, validated.error)
            return Err(f"Validation failed: {validated.error}")

        scan_input = validated.value
        doc_format = document.type
        if (scan_input.mime_type or "").lower() == "application/pdf":
            doc_format = DocumentFormat.PDF
        ocr_document = Document(
            content=scan_input.file,
            type=doc_format,
            name=document.name,
            mime_type=scan_input.mime_type,
            options=scan_input.options,
        )

        recognized = await self.ocr_provider.process_documents([ocr_document])
        if isinstance(recognized, Err):
            logger.warning("[%s] OCR failed: %s", scan_id, recognized.error)
            return Err(f"OCR processing failed: {recognized.error}")
        if not recognized.value or not recognized.value[0]:
            logger.warning("[%s] OCR returned no pages", scan_id)
            return Err("OCR processing returned empty results")

        page = recognized.value[0][0]
        logger.info(
            "[%s] Recognized %d characters (confidence %.2f)",
            scan_id,
            len(page.text),
            page.confidence,
        )

        extracted = await self.field_extractor.extract_from_text(page.text)
        if isinstance(extracted, Err):
            logger.warning("[%s] Extraction failed: %s", scan_id, extracted.error)
            return Err(f"Data extraction failed: {extracted.error}")

        ocr_confidence = clamp_confidence(page.confidence)
        extraction_confidence = clamp_confidence(extracted.value.confidence)
        result = ProcessingResult(
            record=extracted.value.record,
            ocr_confidence=ocr_confidence,
            extraction_confidence=extraction_confidence,
            overall_confidence=blend_overall_confidence(
                ocr_confidence, extraction_confidence
            ),
            raw_text=page.text,
        )
        logger.info(
            "[%s] Scan complete in %.2fs (overall confidence %.2f, valid input: %s)",
            scan_id,
            time.monotonic() - start,
            result.overall_confidence,
            result.record.is_valid_input,
        )
        return Ok(result)

    async def process_documents(
        self, documents: Sequence[Document]
    ) -> Outcome[list[ProcessingResult[RecordT]], str]:
        """Scan documents one at a time, stopping at the first failure.

        Args:
            documents: Documents to scan, in order.

        Returns:
            One result per document, or the first failure message.
        """
        results: list[ProcessingResult[RecordT]] = []
        for index, document in enumerate(documents):
            outcome = await self.process_document(document)
            if isinstance(outcome, Err):
                logger.warning(
                    "Batch stopped at document %d of %d", index + 1, len(documents)
                )
                return outcome
            results.append(outcome.value)
        return Ok(results)
