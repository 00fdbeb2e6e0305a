"""Per-family field extraction from recognized text.

A :class:`FieldExtractor` sends OCR text to the extraction collaborator
with its family schema, types the reply into the family record, scores
it and runs the family's hallucination detector over it.
"""

from dataclasses import dataclass
from typing import Generic, TypeVar

from pydantic import ValidationError as PydanticValidationError

from docscan.core.result import Err, Ok, Outcome
from docscan.utils.logger import get_logger
from docscan.validation.hallucination import HallucinationDetector

from .confidence import ConfidenceCalculator
from .schemas import ExtractedRecord, with_validity
from .types import ExtractionRequest, FieldSchema, JsonExtractor

logger = get_logger(__name__)

RecordT = TypeVar("RecordT", bound=ExtractedRecord)


@dataclass(frozen=True)
class ExtractedData(Generic[RecordT]):
    """A typed record and the extraction confidence assigned to it."""

    record: RecordT
    confidence: float


class FieldExtractor(Generic[RecordT]):
    """Extracts one document family's fields from recognized text.

    Args:
        record_type: Record model the reply is typed into.
        schema: Schema sent to the extraction collaborator.
        json_extractor: Extraction collaborator.
        detector: Hallucination detector for the family.
        calculator: Confidence calculator; defaults to the standard one.
    """

    def __init__(
        self,
        record_type: type[RecordT],
        schema: FieldSchema,
        json_extractor: JsonExtractor,
        detector: HallucinationDetector[RecordT],
        calculator: ConfidenceCalculator | None = None,
    ) -> None:
        self.record_type = record_type
        self.schema = schema
        self.json_extractor = json_extractor
        self.detector = detector
        self.calculator = calculator or ConfidenceCalculator()

    async def extract_from_text(self, text: str) -> Outcome[ExtractedData[RecordT], str]:
        """Extract a record from ``text``.

        Args:
            text: OCR text, passed to the collaborator unchanged.

        Returns:
            The detected record with its confidence, or the failure message.
        """
        outcome = await self.json_extractor.extract(
            ExtractionRequest(text=text, schema=self.schema)
        )
        if isinstance(outcome, Err):
            return Err(str(outcome.error))

        result = outcome.value
        try:
            record = self.record_type.model_validate(result.json)
        except PydanticValidationError as exc:
            logger.warning("Extraction reply rejected by %s schema", self.schema.name)
            return Err(
                f"Extracted data does not match the {self.schema.name} schema: {exc}"
            )

        confidence = self.calculator.calculate(
            result.metadata, record.model_dump(by_alias=True, exclude_none=True)
        )
        record = self.detector.detect(
            with_validity(record, record.is_valid_input, confidence)
        )
        logger.debug(
            "%s extraction confidence %.2f (valid input: %s)",
            self.schema.name,
            record.confidence,
            record.is_valid_input,
        )
        return Ok(ExtractedData(record=record, confidence=record.confidence))
