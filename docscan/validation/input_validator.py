"""Structural checks on a document before any OCR call is made."""

from pathlib import Path
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, field_validator, model_validator
from pydantic_core import PydanticCustomError
from pydantic import ValidationError as PydanticValidationError

from docscan.core.errors import ValidationError, ValidationIssue
from docscan.core.result import Err, Ok, Outcome
from docscan.ocr.types import Document, ScannerOptions
from docscan.utils.logger import get_logger

logger = get_logger(__name__)

SUPPORTED_MIME_TYPES = frozenset(
    {"image/jpeg", "image/png", "image/heic", "image/heif", "application/pdf"}
)


class ScannerInput(BaseModel):
    """A document payload that passed validation.

    ``file`` is passed through unchanged.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    supported_mime_types: ClassVar[frozenset[str]] = SUPPORTED_MIME_TYPES

    file: Any
    mime_type: str | None = None
    options: ScannerOptions | None = None

    @field_validator("file")
    @classmethod
    def _check_file(cls, value: Any) -> Any:
        if isinstance(value, bytes | bytearray):
            if not value:
                raise PydanticCustomError("empty_content", "File content cannot be empty")
            return value
        if isinstance(value, memoryview):
            if value.nbytes == 0:
                raise PydanticCustomError("empty_content", "File content cannot be empty")
            return value
        if isinstance(value, str | Path):
            if not str(value).strip():
                raise PydanticCustomError("empty_path", "File path cannot be empty")
            return value
        raise PydanticCustomError(
            "unsupported_content",
            "Unsupported content type: {type_name}",
            {"type_name": type(value).__name__},
        )

    @field_validator("mime_type")
    @classmethod
    def _check_mime_type(cls, value: str | None) -> str | None:
        if value is not None and value.lower() not in cls.supported_mime_types:
            raise PydanticCustomError(
                "unsupported_mime_type",
                "Unsupported MIME type: {mime_type}",
                {"mime_type": value},
            )
        return value


class CheckScannerInput(ScannerInput):
    """Input accepted by the check scanner."""


class ReceiptScannerInput(ScannerInput):
    """Input accepted by the receipt scanner."""

    @model_validator(mode="after")
    def _check_options(self) -> "ReceiptScannerInput":
        options = self.options
        if options and options.force_ocr and options.enhance_image is False:
            raise PydanticCustomError(
                "conflicting_options",
                "When forcing OCR, image enhancement should not be disabled",
            )
        return self


def _to_issues(exc: PydanticValidationError) -> list[ValidationIssue]:
    return [
        ValidationIssue(
            location=".".join(str(part) for part in error["loc"]),
            message=error["msg"],
        )
        for error in exc.errors()
    ]


class InputValidator:
    """Validates documents against a family's input model.

    Args:
        input_model: Model describing acceptable input for the family.
    """

    def __init__(self, input_model: type[ScannerInput] = ScannerInput) -> None:
        self.input_model = input_model

    def validate(self, document: Document) -> Outcome[ScannerInput, ValidationError]:
        """Check ``document`` without touching its content.

        Args:
            document: Candidate document.

        Returns:
            The validated input, or a ``ValidationError`` describing the
            first violated constraint.
        """
        try:
            validated = self.input_model.model_validate(
                {
                    "file": document.content,
                    "mime_type": document.mime_type,
                    "options": document.options,
                }
            )
        except PydanticValidationError as exc:
            error = ValidationError(_to_issues(exc))
            logger.info("Rejected %s: %s", document.display_name, error)
            return Err(error)
        return Ok(validated)

    def assert_valid(self, document: Document) -> ScannerInput:
        """Like :meth:`validate`, but raises ``ValidationError`` on failure."""
        outcome = self.validate(document)
        if isinstance(outcome, Err):
            raise outcome.error
        return outcome.value
