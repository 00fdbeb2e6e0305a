"""Configuration management for the document scanner.

Loads and validates YAML configuration with sensible defaults for the
OCR provider, the extraction service and the hallucination pattern
tables.
"""

import logging
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, PositiveFloat

from docscan.validation.hallucination import CheckPatterns, ReceiptPatterns

logger = logging.getLogger(__name__)

DEFAULT_API_BASE = "https://api.mistral.ai"


class OCRConfig(BaseModel):
    """Configuration for the OCR provider."""

    provider: Literal["mistral", "tesseract"] = "mistral"
    model: str = "mistral-ocr-latest"
    api_base: str = DEFAULT_API_BASE
    timeout_s: PositiveFloat = 60.0
    tesseract_cmd: str | None = None
    default_lang: str = "eng"
    psm: int = 3
    pdf_dpi: int = 300


class ExtractionConfig(BaseModel):
    """Configuration for the extraction service."""

    model: str = "mistral-large-latest"
    api_base: str = DEFAULT_API_BASE
    timeout_s: PositiveFloat = 60.0
    clean_finish_reasons: list[str] = Field(default_factory=lambda: ["stop"])


class HallucinationConfig(BaseModel):
    """Placeholder tables used by the hallucination detectors."""

    check: CheckPatterns = Field(default_factory=CheckPatterns)
    receipt: ReceiptPatterns = Field(default_factory=ReceiptPatterns)


class ServerConfig(BaseModel):
    """Bind address for the API server."""

    host: str = "0.0.0.0"
    port: int = Field(default=8000, gt=0, lt=65536)


class AppConfig(BaseModel):
    """Top-level application configuration."""

    server: ServerConfig = Field(default_factory=ServerConfig)
    ocr: OCRConfig = Field(default_factory=OCRConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    hallucination: HallucinationConfig = Field(default_factory=HallucinationConfig)
    api_key_env: str = "MISTRAL_API_KEY"
    log_level: str = "INFO"


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.
            Defaults to configs/config.yaml.

    Returns:
        Validated application configuration.
    """
    if path is None:
        path = Path("configs/config.yaml")

    if path.exists():
        logger.info("Loading configuration from %s", path)
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
        return AppConfig(**raw)

    logger.info("No config file found at %s, using defaults", path)
    return AppConfig()
