"""Builds document scanners for each supported document family."""

import os
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from docscan.core.errors import ConfigurationError
from docscan.extraction.confidence import ConfidenceCalculator
from docscan.extraction.field_extractor import FieldExtractor
from docscan.extraction.mistral import MistralJsonExtractor
from docscan.extraction.schemas import (
    CHECK_SCHEMA,
    RECEIPT_SCHEMA,
    Check,
    ExtractedRecord,
    Receipt,
)
from docscan.extraction.types import FieldSchema, JsonExtractor
from docscan.ocr.mistral import MistralOCRProvider
from docscan.ocr.tesseract_engine import TesseractOCRProvider
from docscan.ocr.types import OCRProvider
from docscan.utils.config import AppConfig, HallucinationConfig
from docscan.validation.hallucination import (
    CheckHallucinationDetector,
    HallucinationDetector,
    ReceiptHallucinationDetector,
)
from docscan.validation.input_validator import (
    CheckScannerInput,
    InputValidator,
    ReceiptScannerInput,
    ScannerInput,
)

from .scanner import DocumentScanner

MIN_API_KEY_LENGTH = 20
PLACEHOLDER_KEY_PATTERNS = ("placeholder", "api-key", "test-key")


class DocumentType(StrEnum):
    """Supported document families."""

    CHECK = "check"
    RECEIPT = "receipt"


@dataclass(frozen=True)
class DocumentFamily:
    """Everything that differs between document families."""

    record_type: type[ExtractedRecord]
    schema: FieldSchema
    input_model: type[ScannerInput]
    detector: Callable[[HallucinationConfig], HallucinationDetector[Any]]


FAMILIES: dict[DocumentType, DocumentFamily] = {
    DocumentType.CHECK: DocumentFamily(
        record_type=Check,
        schema=CHECK_SCHEMA,
        input_model=CheckScannerInput,
        detector=lambda cfg: CheckHallucinationDetector(cfg.check),
    ),
    DocumentType.RECEIPT: DocumentFamily(
        record_type=Receipt,
        schema=RECEIPT_SCHEMA,
        input_model=ReceiptScannerInput,
        detector=lambda cfg: ReceiptHallucinationDetector(cfg.receipt),
    ),
}


def document_fields(document_type: DocumentType | str) -> list[str]:
    """List the record field names of a family, as sent over the wire."""
    record_type = FAMILIES[DocumentType(document_type)].record_type
    return [info.alias or name for name, info in record_type.model_fields.items()]


def resolve_api_key(config: AppConfig) -> str:
    """Read and sanity-check the API key from the configured variable.

    Raises:
        ConfigurationError: If the key is missing or looks like a placeholder.
    """
    key = os.environ.get(config.api_key_env, "").strip()
    if not key:
        raise ConfigurationError(f"{config.api_key_env} is not set")
    if len(key) < MIN_API_KEY_LENGTH:
        raise ConfigurationError(f"{config.api_key_env} is too short to be a valid key")
    lowered = key.lower()
    if any(pattern in lowered for pattern in PLACEHOLDER_KEY_PATTERNS):
        raise ConfigurationError(f"{config.api_key_env} contains a placeholder value")
    return key


def build_ocr_provider(config: AppConfig) -> OCRProvider:
    """Create the single OCR provider named in the configuration."""
    ocr = config.ocr
    if ocr.provider == "tesseract":
        return TesseractOCRProvider(
            tesseract_cmd=ocr.tesseract_cmd,
            default_lang=ocr.default_lang,
            psm=ocr.psm,
            pdf_dpi=ocr.pdf_dpi,
        )
    return MistralOCRProvider(
        api_key=resolve_api_key(config),
        model=ocr.model,
        api_base=ocr.api_base,
        timeout=ocr.timeout_s,
    )


def build_json_extractor(config: AppConfig) -> JsonExtractor:
    extraction = config.extraction
    return MistralJsonExtractor(
        api_key=resolve_api_key(config),
        model=extraction.model,
        api_base=extraction.api_base,
        timeout=extraction.timeout_s,
        clean_finish_reasons=extraction.clean_finish_reasons,
    )


def create_scanner(
    document_type: DocumentType | str,
    config: AppConfig | None = None,
    ocr_provider: OCRProvider | None = None,
    json_extractor: JsonExtractor | None = None,
) -> DocumentScanner[Any]:
    """Build a scanner for one document family.

    Collaborators not passed in are built from ``config``.

    Args:
        document_type: Family to scan.
        config: Application configuration; defaults are used when omitted.
        ocr_provider: OCR collaborator override.
        json_extractor: Extraction collaborator override.

    Returns:
        A scanner wired for the family.

    Raises:
        ValueError: If ``document_type`` is not a supported family.
        ConfigurationError: If a collaborator needs an API key that is
            missing or invalid.
    """
    config = config or AppConfig()
    doc_type = DocumentType(document_type)
    family = FAMILIES[doc_type]

    extractor = FieldExtractor(
        record_type=family.record_type,
        schema=family.schema,
        json_extractor=json_extractor or build_json_extractor(config),
        detector=family.detector(config.hallucination),
        calculator=ConfidenceCalculator(config.extraction.clean_finish_reasons),
    )
    return DocumentScanner(
        document_type=doc_type.value,
        ocr_provider=ocr_provider or build_ocr_provider(config),
        field_extractor=extractor,
        input_validator=InputValidator(family.input_model),
    )
