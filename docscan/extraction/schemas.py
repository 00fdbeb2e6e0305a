"""Typed records for each document family and their extraction schemas.

Records are immutable pydantic models. Values are normalized while the
record is built (dates, MICR data, enum spellings, money text); after
that only the validity flag and the confidence change, via
:func:`with_validity`.
"""

import datetime as dt
import re
from enum import StrEnum
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .types import FieldSchema

RecordT = TypeVar("RecordT", bound="ExtractedRecord")

_MICR_ROUTING = re.compile(r"⑆(\d{9})⑆")
_MICR_ACCOUNT = re.compile(r"⑈(\d+)⑈")
_MICR_CHECK_NUMBER = re.compile(r"⑇(\d+)⑇")


def parse_money(value: Any) -> Any:
    """Turn money text such as ``"$1,234.50"`` into a float.

    Values that are not text are returned untouched so pydantic can
    validate them; empty text becomes ``None``.
    """
    if not isinstance(value, str):
        return value
    cleaned = value.replace("$", "").replace(",", "").strip()
    if not cleaned:
        return None
    try:
        return float(cleaned)
    except ValueError:
        return value


class ExtractedRecord(BaseModel):
    """Fields shared by every extracted record."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
        frozen=True,
    )

    is_valid_input: bool | None = None
    confidence: float | None = None


def with_validity(
    record: RecordT, is_valid: bool | None, confidence: float | None
) -> RecordT:
    """Return a copy of ``record`` with new validity and confidence values."""
    return record.model_copy(
        update={"is_valid_input": is_valid, "confidence": confidence}
    )


class CheckType(StrEnum):
    PERSONAL = "personal"
    BUSINESS = "business"
    CASHIER = "cashier"
    CERTIFIED = "certified"
    TRAVELER = "traveler"
    GOVERNMENT = "government"
    PAYROLL = "payroll"
    MONEY_ORDER = "money_order"
    OTHER = "other"


class BankAccountType(StrEnum):
    CHECKING = "checking"
    SAVINGS = "savings"
    MONEY_MARKET = "money_market"
    OTHER = "other"


def _coerce_enum(value: Any, enum_cls: type[StrEnum]) -> Any:
    if not isinstance(value, str) or not value.strip():
        return value or None
    key = value.strip().lower().replace(" ", "_")
    try:
        return enum_cls(key)
    except ValueError:
        return enum_cls("other")


def _lookup(data: dict[str, Any], alias: str, name: str) -> Any:
    return data.get(alias) if data.get(alias) is not None else data.get(name)


class Check(ExtractedRecord):
    """Data extracted from a bank check."""

    check_number: str | None = None
    date: dt.date | str | None = None
    payee: str | None = None
    payer: str | None = None
    amount: float | None = None
    amount_text: str | None = None
    memo: str | None = None
    bank_name: str | None = None
    routing_number: str | None = None
    account_number: str | None = None
    check_type: CheckType | None = None
    account_type: BankAccountType | None = None
    signature: bool | None = None
    signature_text: str | None = None
    fractional_code: str | None = None
    micr_line: str | None = None
    metadata: dict[str, Any] | None = None

    @model_validator(mode="before")
    @classmethod
    def _fill_from_micr_line(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        micr = _lookup(data, "micrLine", "micr_line")
        if not isinstance(micr, str) or not micr:
            return data

        data = dict(data)
        for alias, name, pattern in (
            ("routingNumber", "routing_number", _MICR_ROUTING),
            ("accountNumber", "account_number", _MICR_ACCOUNT),
            ("checkNumber", "check_number", _MICR_CHECK_NUMBER),
        ):
            if _lookup(data, alias, name):
                continue
            match = pattern.search(micr)
            if match:
                data.pop(name, None)
                data[alias] = match.group(1)
        return data

    @field_validator("check_number", "routing_number", "account_number", mode="before")
    @classmethod
    def _numbers_as_text(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("routing_number")
    @classmethod
    def _normalize_routing_number(cls, value: str | None) -> str | None:
        if value and len(value) > 9:
            value = value.lstrip("0")[:9]
        return value

    @field_validator("date", mode="before")
    @classmethod
    def _parse_date(cls, value: Any) -> Any:
        if not isinstance(value, str):
            return value
        text = value.strip()
        if not text:
            return None
        try:
            return dt.date.fromisoformat(text)
        except ValueError:
            pass
        try:
            return dt.datetime.fromisoformat(text).date()
        except ValueError:
            return value

    @field_validator("amount", mode="before")
    @classmethod
    def _parse_amount(cls, value: Any) -> Any:
        return parse_money(value)

    @field_validator("check_type", mode="before")
    @classmethod
    def _parse_check_type(cls, value: Any) -> Any:
        return _coerce_enum(value, CheckType)

    @field_validator("account_type", mode="before")
    @classmethod
    def _parse_account_type(cls, value: Any) -> Any:
        return _coerce_enum(value, BankAccountType)

    @property
    def date_text(self) -> str | None:
        """The check date as ``YYYY-MM-DD`` text when it parsed, else the raw text."""
        if isinstance(self.date, dt.date):
            return self.date.isoformat()
        return self.date


class _RecordPart(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
        frozen=True,
    )


class Merchant(_RecordPart):
    name: str | None = None
    address: str | None = None
    phone: str | None = None
    website: str | None = None
    tax_id: str | None = None
    store_id: str | None = None
    chain_name: str | None = None


class Totals(_RecordPart):
    subtotal: float | None = None
    tax: float | None = None
    tip: float | None = None
    discount: float | None = None
    total: float | None = None

    @field_validator("subtotal", "tax", "tip", "discount", "total", mode="before")
    @classmethod
    def _parse_money(cls, value: Any) -> Any:
        return parse_money(value)


class LineItem(_RecordPart):
    description: str = ""
    sku: str | None = None
    quantity: float | None = None
    unit: str | None = None
    unit_price: float | None = None
    total_price: float | None = None
    discounted: bool | None = None
    discount_amount: float | None = None
    category: str | None = None

    @field_validator(
        "unit_price", "total_price", "discount_amount", mode="before"
    )
    @classmethod
    def _parse_money(cls, value: Any) -> Any:
        return parse_money(value)

    @field_validator("description", mode="before")
    @classmethod
    def _description_text(cls, value: Any) -> Any:
        return "" if value is None else value


class TaxLine(_RecordPart):
    tax_name: str | None = None
    tax_type: str | None = None
    tax_rate: float | None = None
    tax_amount: float | None = None


class Payment(_RecordPart):
    method: str | None = None
    card_type: str | None = None
    last_digits: str | None = None
    amount: float | None = None
    transaction_id: str | None = None


class Receipt(ExtractedRecord):
    """Data extracted from a point-of-sale receipt."""

    merchant: Merchant | None = None
    receipt_number: str | None = None
    receipt_type: str | None = None
    timestamp: dt.datetime | str | None = None
    payment_method: str | None = None
    totals: Totals | None = None
    currency: str | None = None
    items: list[LineItem] | None = None
    taxes: list[TaxLine] | None = None
    payments: list[Payment] | None = None
    notes: list[str] | None = None
    metadata: dict[str, Any] | None = None

    @field_validator("receipt_number", mode="before")
    @classmethod
    def _number_as_text(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("currency")
    @classmethod
    def _upper_currency(cls, value: str | None) -> str | None:
        return value.upper() if value else value

    @field_validator("timestamp", mode="before")
    @classmethod
    def _parse_timestamp(cls, value: Any) -> Any:
        if not isinstance(value, str):
            return value
        text = value.strip()
        if not text:
            return None
        try:
            return dt.datetime.fromisoformat(text)
        except ValueError:
            return value

    @property
    def total(self) -> float:
        """The receipt total, or 0 when it was not extracted."""
        if self.totals is None or self.totals.total is None:
            return 0.0
        return self.totals.total


_CHECK_INSTRUCTIONS = """\
The text below was recognized from a photographed bank check.
Extract: check number, date, payee, payer, numeric amount, amount in words,
memo, bank name, 9-digit routing number, account number, check type,
account type, whether the check is signed, and the MICR line.
Give amounts as numbers without currency symbols and dates as YYYY-MM-DD.
Extract only what is clearly present in the text; leave anything uncertain
empty rather than guessing. Set isValidInput to false and confidence below
0.5 when the text does not look like a check or carries little information."""

_RECEIPT_INSTRUCTIONS = """\
The text below was recognized from a photographed receipt.
Extract the merchant (name, address, phone, website, store id, chain),
receipt number, date and time, purchased items with quantities, unit and
total prices, totals (subtotal, tax, tip, discount, total), taxes,
payments and the 3-letter ISO currency code.
Give amounts as numbers without currency symbols and the timestamp in
ISO 8601 format. Extract only what is clearly present in the text; leave
anything uncertain empty rather than guessing. Set isValidInput to false
and confidence below 0.5 when the text does not look like a receipt or
carries little information."""


CHECK_SCHEMA = FieldSchema(
    name="Check",
    definition=Check.model_json_schema(by_alias=True),
    instructions=_CHECK_INSTRUCTIONS,
)

RECEIPT_SCHEMA = FieldSchema(
    name="Receipt",
    definition=Receipt.model_json_schema(by_alias=True),
    instructions=_RECEIPT_INSTRUCTIONS,
)
