"""Detection of fabricated values in extracted records.

When an extraction model cannot ground its answer in the source text it
tends to fall back on canned values: round amounts, placeholder names,
sample dates. Each detector counts how many of those patterns a record
hits. Two or more hits mark the record as invalid input and cap its
confidence at 0.3.

Pattern tables are immutable configuration objects so they can be tuned
per deployment from the YAML config.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict

from docscan.extraction.schemas import Check, ExtractedRecord, Receipt, with_validity
from docscan.utils.logger import get_logger

logger = get_logger(__name__)

SUSPICION_THRESHOLD = 2
MAX_SUSPICIOUS_CONFIDENCE = 0.3
COMPOUND_BONUS = 2
AMOUNT_TOLERANCE = 0.005

RecordT = TypeVar("RecordT", bound=ExtractedRecord)


class CheckPatterns(BaseModel):
    """Placeholder values commonly fabricated for checks."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    check_numbers: tuple[str, ...] = ("1234", "5678", "0000", "1001", "100", "123")
    payee_names: tuple[str, ...] = (
        "John Doe",
        "Jane Doe",
        "John Smith",
        "Jane Smith",
        "ABC Company",
        "XYZ Corp",
    )
    payer_names: tuple[str, ...] = ("John Doe", "Jane Doe", "John Smith", "Jane Smith")
    amounts: tuple[float, ...] = (100.0, 150.75, 200.0, 500.0, 1000.0, 50.0, 25.0)
    dates: tuple[str, ...] = ("2023-10-05", "2024-01-05", "2023-01-01", "2024-01-01")
    bank_names: tuple[str, ...] = ("Bank", "First Bank", "National Bank", "City Bank")
    routing_numbers: tuple[str, ...] = ("123456789", "000000000", "111111111")
    canonical_check_number: str = "1234"
    canonical_payee: str = "John Doe"
    canonical_amount: float = 100.0


class ReceiptPatterns(BaseModel):
    """Placeholder values commonly fabricated for receipts."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    merchant_names: tuple[str, ...] = (
        "Store",
        "Market",
        "Supermarket",
        "Shop",
        "Restaurant",
        "ABC Store",
        "XYZ Market",
    )
    totals: tuple[float, ...] = (0.0, 10.0, 15.99, 20.0, 25.0, 50.0, 100.0, 5.99, 12.99)
    receipt_numbers: tuple[str, ...] = ("123", "1234", "001", "100", "R001", "TXN123")
    item_descriptions: tuple[str, ...] = ("Item", "Product", "Food", "Drink", "Service")
    addresses: tuple[str, ...] = ("123 Main St", "456 Oak Ave", "Address", "Street")
    concentration_threshold: float = 20.0
    canonical_merchant: str = "Store"
    canonical_total: float = 10.0


@dataclass(frozen=True)
class SuspicionReport:
    """Outcome of scanning one record for fabricated values."""

    score: int
    reasons: tuple[str, ...] = ()

    @property
    def suspicious(self) -> bool:
        return self.score >= SUSPICION_THRESHOLD


def matches_text(value: str | None, patterns: Iterable[str]) -> bool:
    """Case-insensitive substring match of ``value`` against placeholder text.

    ``"Bank"`` flags ``"Chase Bank"`` as well as ``"bank"``.
    """
    if not value or not value.strip():
        return False
    text = value.strip().lower()
    return any(
        needle in text
        for needle in (pattern.strip().lower() for pattern in patterns)
        if needle
    )


def matches_amount(value: float | None, amounts: Iterable[float]) -> bool:
    if value is None:
        return False
    return any(abs(value - amount) < AMOUNT_TOLERANCE for amount in amounts)


def _same_text(value: str | None, expected: str) -> bool:
    return bool(value) and value.strip().lower() == expected.strip().lower()


class HallucinationDetector(Generic[RecordT]):
    """Applies the suspicion decision rule to records of one family."""

    family = "record"

    def assess(self, record: RecordT) -> SuspicionReport:
        raise NotImplementedError

    def detect(self, record: RecordT) -> RecordT:
        """Return ``record`` with its validity flag decided.

        Suspicious records become invalid. Otherwise the record becomes
        valid, unless it was already marked invalid, which is never undone.
        Every invalid record leaves with confidence at most 0.3.

        Args:
            record: Record to scan.

        Returns:
            A new record; domain fields are unchanged.
        """
        report = self.assess(record)
        if report.suspicious:
            logger.warning(
                "Suspected hallucination in %s record (score %d): %s",
                self.family,
                report.score,
                ", ".join(report.reasons),
            )
            is_valid = False
        else:
            is_valid = record.is_valid_input is not False

        if is_valid:
            return with_validity(record, True, record.confidence)
        confidence = min(record.confidence or 0.0, MAX_SUSPICIOUS_CONFIDENCE)
        return with_validity(record, False, confidence)


class CheckHallucinationDetector(HallucinationDetector[Check]):
    """Scores checks against placeholder check data.

    Args:
        patterns: Placeholder tables; defaults to the built-in set.
    """

    family = "check"

    def __init__(self, patterns: CheckPatterns | None = None) -> None:
        self.patterns = patterns or CheckPatterns()

    def assess(self, record: Check) -> SuspicionReport:
        p = self.patterns
        reasons: list[str] = []
        score = 0

        def hit(reason: str, points: int = 1) -> None:
            nonlocal score
            score += points
            reasons.append(reason)

        check_number = (record.check_number or "").strip()
        if check_number and check_number in p.check_numbers:
            hit(f"placeholder check number {check_number!r}")
        if matches_text(record.payee, p.payee_names):
            hit(f"placeholder payee {record.payee!r}")
        if matches_text(record.payer, p.payer_names):
            hit(f"placeholder payer {record.payer!r}")
        if matches_amount(record.amount, p.amounts):
            hit(f"placeholder amount {record.amount}")

        date_text = record.date_text
        if date_text and date_text.strip() in p.dates:
            hit(f"placeholder date {date_text}")

        if matches_text(record.bank_name, p.bank_names):
            hit(f"generic bank name {record.bank_name!r}")
        routing = (record.routing_number or "").strip()
        if routing and routing in p.routing_numbers:
            hit(f"placeholder routing number {routing}")
        if (record.amount or 0) > 0 and not record.payee and not record.payer:
            hit("amount without payee or payer")

        if (
            check_number == p.canonical_check_number
            and _same_text(record.payee, p.canonical_payee)
            and matches_amount(record.amount, (p.canonical_amount,))
        ):
            hit("canonical placeholder check", COMPOUND_BONUS)

        return SuspicionReport(score=score, reasons=tuple(reasons))


class ReceiptHallucinationDetector(HallucinationDetector[Receipt]):
    """Scores receipts against placeholder receipt data.

    Args:
        patterns: Placeholder tables; defaults to the built-in set.
    """

    family = "receipt"

    def __init__(self, patterns: ReceiptPatterns | None = None) -> None:
        self.patterns = patterns or ReceiptPatterns()

    def assess(self, record: Receipt) -> SuspicionReport:
        p = self.patterns
        reasons: list[str] = []
        score = 0

        def hit(reason: str, points: int = 1) -> None:
            nonlocal score
            score += points
            reasons.append(reason)

        merchant = record.merchant
        merchant_name = merchant.name if merchant else None
        address = merchant.address if merchant else None
        phone = merchant.phone if merchant else None
        items = record.items or []
        total = record.total

        if matches_text(merchant_name, p.merchant_names):
            hit(f"generic merchant name {merchant_name!r}")
        if record.totals is not None and matches_amount(record.totals.total, p.totals):
            hit(f"placeholder total {record.totals.total}")

        receipt_number = (record.receipt_number or "").strip().lower()
        if receipt_number and receipt_number in {n.lower() for n in p.receipt_numbers}:
            hit(f"placeholder receipt number {record.receipt_number!r}")
        if matches_text(address, p.addresses):
            hit(f"generic merchant address {address!r}")
        if any(matches_text(item.description, p.item_descriptions) for item in items):
            hit("generic line item description")

        if (
            len(items) == 1
            and total > p.concentration_threshold
            and matches_amount(items[0].total_price, (total,))
        ):
            hit("single line item carries the whole total")
        if not items and total > 0:
            hit("no line items despite a positive total")
        if not record.timestamp and total > 0 and merchant_name:
            hit("missing timestamp")

        rich_output = bool(merchant_name) or total > 0 or bool(items)
        minimal_input = not address and not phone and not items
        if rich_output and minimal_input and total > 0:
            hit("structured output from minimal input")

        if (
            _same_text(merchant_name, p.canonical_merchant)
            and matches_amount(total, (p.canonical_total,))
            and len(items) == 1
        ):
            hit("canonical placeholder receipt", COMPOUND_BONUS)

        return SuspicionReport(score=score, reasons=tuple(reasons))
