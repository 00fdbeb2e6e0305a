"""Pydantic request/response schemas for the FastAPI endpoints."""

from typing import Any

from pydantic import BaseModel


class ScanResponse(BaseModel):
    """Response schema for a scanned document."""

    success: bool
    document_id: str
    document_type: str
    filename: str | None = None
    record: dict[str, Any]
    is_valid_input: bool | None = None
    ocr_confidence: float
    extraction_confidence: float
    overall_confidence: float
    raw_text: str
    processing_time_ms: float


class BatchScanResponse(BaseModel):
    """Response schema for a batch of scanned documents."""

    success: bool
    total_documents: int
    results: list[ScanResponse]


class DocumentTypeInfo(BaseModel):
    """Information about a supported document family."""

    name: str
    description: str
    supported_fields: list[str]


class DocumentTypesResponse(BaseModel):
    """Response schema listing the supported document families."""

    document_types: list[DocumentTypeInfo]


class HealthResponse(BaseModel):
    """Response schema for the health check endpoint."""

    status: str
    version: str
    ocr_provider: str
    tesseract_available: bool
