"""Extraction collaborator contract and its request/response types."""

from dataclasses import dataclass, field
from typing import Any, Protocol

from docscan.core.result import Outcome


@dataclass(frozen=True)
class FieldSchema:
    """Named description of a target record shape.

    Attributes:
        name: Schema name, e.g. ``"Check"``.
        definition: JSON schema the extraction service must follow.
        instructions: Family-specific guidance sent along with the text.
    """

    name: str
    definition: dict[str, Any]
    instructions: str = ""


@dataclass(frozen=True)
class ExtractionOptions:
    """Optional knobs for a single extraction call."""

    strict_schema: bool = False


@dataclass(frozen=True)
class ExtractionRequest:
    """Recognized text to convert into a record of ``schema`` shape."""

    text: str
    schema: FieldSchema
    options: ExtractionOptions = field(default_factory=ExtractionOptions)


@dataclass(frozen=True)
class ProviderMetadata:
    """What the extraction service reported about its own answer."""

    finish_reason: str | None = None
    model: str | None = None
    usage: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ExtractionResult:
    """Parsed JSON returned by the extraction service."""

    json: dict[str, Any]
    confidence: float
    metadata: ProviderMetadata = field(default_factory=ProviderMetadata)


class JsonExtractor(Protocol):
    """Converts recognized text into schema-shaped JSON."""

    async def extract(
        self, request: ExtractionRequest
    ) -> Outcome[ExtractionResult, Exception]: ...
