"""FastAPI application for the document scanner.

Provides REST endpoints for scanning checks and receipts, batch
scanning, listing the supported document families, and health checks.
"""

import shutil
import time
import uuid
from typing import Annotated, Any

from fastapi import FastAPI, File, HTTPException, Query, UploadFile
from fastapi.middleware.cors import CORSMiddleware

from docscan.core.errors import ConfigurationError
from docscan.core.result import Err
from docscan.ocr.types import Document, DocumentFormat
from docscan.scanner.factory import DocumentType, create_scanner, document_fields
from docscan.scanner.scanner import DocumentScanner, ProcessingResult
from docscan.utils.config import load_config
from docscan.utils.logger import get_logger

from .schemas import (
    BatchScanResponse,
    DocumentTypeInfo,
    DocumentTypesResponse,
    HealthResponse,
    ScanResponse,
)

logger = get_logger(__name__)

VERSION = "1.0.0"

app = FastAPI(
    title="Document Scanner API",
    description="Extract trusted structured data from photographed checks and receipts",
    version=VERSION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_DESCRIPTIONS = {
    DocumentType.CHECK: "Bank check: payee, amount, date, bank and MICR data",
    DocumentType.RECEIPT: "Point-of-sale receipt: merchant, items, totals and payments",
}


def _get_scanner(document_type: DocumentType) -> DocumentScanner[Any]:
    """Build a scanner for one request.

    Raises:
        HTTPException: 500 when the scanner cannot be configured.
    """
    try:
        return create_scanner(document_type, load_config())
    except ConfigurationError as exc:
        logger.error("Scanner configuration failed: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc


def _failure_status(message: str) -> int:
    return 400 if message.startswith("Validation failed") else 502


async def _to_document(
    file: UploadFile, options: dict[str, Any] | None
) -> Document:
    content = await file.read()
    mime_type = file.content_type
    if mime_type == "application/octet-stream":
        mime_type = None
    doc_format = DocumentFormat.PDF if mime_type == "application/pdf" else DocumentFormat.IMAGE
    return Document(
        content=content,
        type=doc_format,
        name=file.filename,
        mime_type=mime_type,
        options=options,
    )


def _scan_options(
    enhance_image: bool | None, force_ocr: bool | None
) -> dict[str, Any] | None:
    options = {
        key: value
        for key, value in {"enhance_image": enhance_image, "force_ocr": force_ocr}.items()
        if value is not None
    }
    return options or None


def _to_response(
    result: ProcessingResult[Any],
    document_type: DocumentType,
    filename: str | None,
    elapsed_ms: float,
) -> ScanResponse:
    return ScanResponse(
        success=True,
        document_id=str(uuid.uuid4()),
        document_type=document_type.value,
        filename=filename,
        record=result.record.model_dump(mode="json", by_alias=True, exclude_none=True),
        is_valid_input=result.record.is_valid_input,
        ocr_confidence=result.ocr_confidence,
        extraction_confidence=result.extraction_confidence,
        overall_confidence=result.overall_confidence,
        raw_text=result.raw_text,
        processing_time_ms=elapsed_ms,
    )


@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Return system health status."""
    return HealthResponse(
        status="healthy",
        version=VERSION,
        ocr_provider=load_config().ocr.provider,
        tesseract_available=shutil.which("tesseract") is not None,
    )


@app.get("/document-types", response_model=DocumentTypesResponse)
async def list_document_types() -> DocumentTypesResponse:
    """List the supported document families and their fields."""
    return DocumentTypesResponse(
        document_types=[
            DocumentTypeInfo(
                name=doc_type.value,
                description=_DESCRIPTIONS[doc_type],
                supported_fields=document_fields(doc_type),
            )
            for doc_type in DocumentType
        ]
    )


@app.post("/scan/{document_type}", response_model=ScanResponse)
async def scan_document(
    document_type: DocumentType,
    file: Annotated[UploadFile, File(...)],
    enhance_image: Annotated[bool | None, Query()] = None,
    force_ocr: Annotated[bool | None, Query()] = None,
) -> ScanResponse:
    """Scan an uploaded document.

    Args:
        document_type: Document family to scan the upload as.
        file: Uploaded document (JPEG, PNG, HEIC, HEIF or PDF).
        enhance_image: Forwarded to the OCR provider.
        force_ocr: Forwarded to the OCR provider.

    Returns:
        The extracted record with its confidence scores.
    """
    start_time = time.time()
    scanner = _get_scanner(document_type)
    document = await _to_document(file, _scan_options(enhance_image, force_ocr))

    outcome = await scanner.process_document(document)
    if isinstance(outcome, Err):
        raise HTTPException(status_code=_failure_status(outcome.error), detail=outcome.error)

    return _to_response(
        outcome.value, document_type, file.filename, (time.time() - start_time) * 1000
    )


@app.post("/scan/{document_type}/batch", response_model=BatchScanResponse)
async def scan_batch(
    document_type: DocumentType,
    files: Annotated[list[UploadFile], File(...)],
) -> BatchScanResponse:
    """Scan several uploads in order, failing on the first bad document.

    Args:
        document_type: Document family to scan the uploads as.
        files: Uploaded documents.

    Returns:
        One result per upload.
    """
    start_time = time.time()
    scanner = _get_scanner(document_type)
    documents = [await _to_document(file, None) for file in files]

    outcome = await scanner.process_documents(documents)
    if isinstance(outcome, Err):
        raise HTTPException(status_code=_failure_status(outcome.error), detail=outcome.error)

    elapsed_ms = (time.time() - start_time) * 1000
    return BatchScanResponse(
        success=True,
        total_documents=len(files),
        results=[
            _to_response(result, document_type, document.name, elapsed_ms)
            for result, document in zip(outcome.value, documents)
        ],
    )
