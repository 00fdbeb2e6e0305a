"""Error taxonomy for the scanning pipeline.

These exceptions are usually carried inside :class:`~docscan.core.result.Err`
values rather than raised; ``InputValidator.assert_valid`` is the one
place that raises them directly.
"""

from dataclasses import dataclass


class ScanError(Exception):
    """Base error for scanning pipeline failures."""


@dataclass(frozen=True)
class ValidationIssue:
    """A single violated input constraint."""

    location: str
    message: str

    def __str__(self) -> str:
        if self.location:
            return f"{self.location}: {self.message}"
        return self.message


class ValidationError(ScanError):
    """Raised when a document fails its structural preconditions.

    Args:
        issues: Violated constraints, in the order they were found.
    """

    def __init__(self, issues: list[ValidationIssue]) -> None:
        self.issues = issues
        super().__init__(str(issues[0]) if issues else "Invalid input")


class RecognitionError(ScanError):
    """Raised when the OCR collaborator fails or returns no usable text."""


class ExtractionError(ScanError):
    """Raised when the extraction collaborator fails or returns unusable data."""


class ConfigurationError(ScanError):
    """Raised when a scanner cannot be built from the given configuration."""
