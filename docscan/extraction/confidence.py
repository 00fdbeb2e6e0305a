"""Confidence scoring for extraction output.

Blends what the extraction service reported about its answer with the
shape of the record it produced. Every function here is pure.
"""

from collections.abc import Iterable, Mapping
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from .types import ProviderMetadata

FINISH_CLEAN = 1.0
FINISH_DEGRADED = 0.75
STRUCTURE_POPULATED = 0.9
STRUCTURE_EMPTY = 0.3
FINISH_WEIGHT = 0.6
STRUCTURE_WEIGHT = 0.2
SUSPICION_FACTOR = 0.3
BASE_WEIGHT = 0.8
SELF_REPORT_WEIGHT = 0.2

OCR_WEIGHT = 0.6
EXTRACTION_WEIGHT = 0.4

SYNTHETIC_FIELDS = frozenset({"isValidInput", "is_valid_input", "confidence"})


def round_confidence(value: float) -> float:
    """Round half-up to two decimals, so 0.925 becomes 0.93."""
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def clamp_confidence(value: float) -> float:
    """Clamp to [0, 1] and round to two decimals."""
    return round_confidence(min(max(value, 0.0), 1.0))


def blend_overall_confidence(ocr_confidence: float, extraction_confidence: float) -> float:
    """Combine OCR and extraction confidence into the overall score.

    Args:
        ocr_confidence: Recognition confidence in [0, 1].
        extraction_confidence: Extraction confidence in [0, 1].

    Returns:
        ``0.6 * ocr + 0.4 * extraction`` rounded to two decimals.
    """
    return round_confidence(
        OCR_WEIGHT * ocr_confidence + EXTRACTION_WEIGHT * extraction_confidence
    )


def is_populated(value: Any) -> bool:
    """Whether a field value carries information.

    ``None`` and empty text or containers are unpopulated, and so are
    containers whose members are all unpopulated. ``0`` and ``False``
    are real values.
    """
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, Mapping):
        return any(is_populated(v) for v in value.values())
    if isinstance(value, list | tuple | set | frozenset):
        return any(is_populated(v) for v in value)
    return True


def has_populated_fields(record: Mapping[str, Any]) -> bool:
    """Whether any domain field of ``record`` is populated."""
    return any(
        is_populated(value)
        for key, value in record.items()
        if key not in SYNTHETIC_FIELDS
    )


class ConfidenceCalculator:
    """Computes the extraction confidence for one record.

    Args:
        clean_finish_reasons: Provider termination reasons that count as
            a normal completion.
    """

    def __init__(self, clean_finish_reasons: Iterable[str] = ("stop",)) -> None:
        self.clean_finish_reasons = frozenset(
            reason.lower() for reason in clean_finish_reasons
        )

    def finish_signal(self, metadata: ProviderMetadata) -> float:
        reason = (metadata.finish_reason or "").lower()
        return FINISH_CLEAN if reason in self.clean_finish_reasons else FINISH_DEGRADED

    def calculate(self, metadata: ProviderMetadata, record: Mapping[str, Any]) -> float:
        """Score an extracted record.

        Args:
            metadata: Provider-reported metadata for the extraction call.
            record: The record as a plain mapping, keyed by field alias.

        Returns:
            Extraction confidence in [0, 1], rounded to two decimals.
        """
        structure = (
            STRUCTURE_POPULATED if has_populated_fields(record) else STRUCTURE_EMPTY
        )
        base = FINISH_WEIGHT * self.finish_signal(metadata) + STRUCTURE_WEIGHT * structure

        valid = record.get("isValidInput", record.get("is_valid_input"))
        if valid is False:
            base *= SUSPICION_FACTOR

        self_reported = record.get("confidence")
        if (
            isinstance(self_reported, int | float)
            and not isinstance(self_reported, bool)
            and 0.0 <= self_reported <= 1.0
        ):
            final = BASE_WEIGHT * base + SELF_REPORT_WEIGHT * self_reported
        else:
            final = base

        return clamp_confidence(final)
