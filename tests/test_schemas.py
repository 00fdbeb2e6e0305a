"""Tests for the check and receipt record models."""

import datetime as dt

import pytest
from pydantic import ValidationError as PydanticValidationError

from docscan.extraction.schemas import (
    CHECK_SCHEMA,
    RECEIPT_SCHEMA,
    BankAccountType,
    Check,
    CheckType,
    Receipt,
    parse_money,
    with_validity,
)


class TestParseMoney:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [("$1,234.50", 1234.5), (" 12.00 ", 12.0), ("7", 7.0), ("", None)],
    )
    def test_money_text(self, text: str, expected: float | None) -> None:
        assert parse_money(text) == expected

    def test_non_text_untouched(self) -> None:
        assert parse_money(3.5) == 3.5
        assert parse_money(None) is None

    def test_unparseable_text_returned(self) -> None:
        assert parse_money("twelve") == "twelve"


class TestCheck:
    def test_camel_case_aliases(self) -> None:
        check = Check.model_validate({"checkNumber": "3307", "bankName": "Chase"})
        assert check.check_number == "3307"
        assert check.bank_name == "Chase"

    def test_populate_by_name(self) -> None:
        assert Check(check_number="12").check_number == "12"

    def test_iso_date_parsed(self) -> None:
        check = Check.model_validate({"date": "2025-03-14"})
        assert check.date == dt.date(2025, 3, 14)
        assert check.date_text == "2025-03-14"

    def test_unparseable_date_kept_as_text(self) -> None:
        check = Check.model_validate({"date": "March 14th"})
        assert check.date == "March 14th"
        assert check.date_text == "March 14th"

    def test_amount_text_parsed(self) -> None:
        assert Check.model_validate({"amount": "$1,482.16"}).amount == 1482.16

    def test_unparseable_amount_rejected(self) -> None:
        with pytest.raises(PydanticValidationError):
            Check.model_validate({"amount": "lots"})

    def test_long_routing_number_normalized(self) -> None:
        check = Check.model_validate({"routingNumber": "0026708413199"})
        assert check.routing_number == "267084131"

    def test_nine_digit_routing_number_untouched(self) -> None:
        assert Check.model_validate({"routingNumber": "011000015"}).routing_number == "011000015"

    def test_numeric_numbers_become_text(self) -> None:
        check = Check.model_validate({"checkNumber": 3307, "accountNumber": 4418203})
        assert check.check_number == "3307"
        assert check.account_number == "4418203"

    def test_enums_coerced(self) -> None:
        check = Check.model_validate({"checkType": "Money Order", "accountType": "SAVINGS"})
        assert check.check_type is CheckType.MONEY_ORDER
        assert check.account_type is BankAccountType.SAVINGS

    def test_unknown_enum_value_becomes_other(self) -> None:
        check = Check.model_validate({"checkType": "starter", "accountType": "brokerage"})
        assert check.check_type is CheckType.OTHER
        assert check.account_type is BankAccountType.OTHER

    def test_numbers_filled_from_micr_line(self) -> None:
        check = Check.model_validate({"micrLine": "⑆267084131⑆ ⑈4418203⑈ ⑇3307⑇"})
        assert check.routing_number == "267084131"
        assert check.account_number == "4418203"
        assert check.check_number == "3307"

    def test_micr_line_does_not_override_extracted_numbers(self) -> None:
        check = Check.model_validate(
            {"micrLine": "⑆267084131⑆ ⑈4418203⑈ ⑇3307⑇", "checkNumber": "3308"}
        )
        assert check.check_number == "3308"
        assert check.routing_number == "267084131"

    def test_records_are_frozen(self) -> None:
        check = Check(payee="A")
        with pytest.raises(PydanticValidationError):
            check.payee = "B"  # type: ignore[misc]

    def test_extra_fields_kept(self) -> None:
        check = Check.model_validate({"payee": "A", "branch": "Main"})
        assert check.model_dump(by_alias=True)["branch"] == "Main"


class TestReceipt:
    def test_nested_parts(self, receipt_json: dict) -> None:
        receipt = Receipt.model_validate(receipt_json)
        assert receipt.merchant is not None
        assert receipt.merchant.name == "Blue Heron Grocery"
        assert receipt.items is not None
        assert receipt.items[2].total_price == 24.83
        assert receipt.total == 39.54

    def test_currency_upper_cased(self, receipt_json: dict) -> None:
        assert Receipt.model_validate(receipt_json).currency == "USD"

    def test_timestamp_parsed(self, receipt_json: dict) -> None:
        receipt = Receipt.model_validate(receipt_json)
        assert receipt.timestamp == dt.datetime(2025, 3, 14, 17, 42)

    def test_money_text_in_totals(self) -> None:
        receipt = Receipt.model_validate({"totals": {"total": "$1,020.00"}})
        assert receipt.total == 1020.0

    def test_missing_total_is_zero(self) -> None:
        assert Receipt().total == 0.0

    def test_line_item_description_defaults_to_empty(self) -> None:
        receipt = Receipt.model_validate({"items": [{"description": None, "totalPrice": 2}]})
        assert receipt.items is not None
        assert receipt.items[0].description == ""


class TestWithValidity:
    def test_returns_new_record(self) -> None:
        check = Check(payee="A", confidence=0.8)
        updated = with_validity(check, False, 0.3)
        assert updated is not check
        assert updated.is_valid_input is False
        assert updated.confidence == 0.3
        assert check.is_valid_input is None
        assert check.confidence == 0.8

    def test_domain_fields_untouched(self, receipt_json: dict) -> None:
        receipt = Receipt.model_validate(receipt_json)
        updated = with_validity(receipt, True, 0.9)
        assert updated.model_dump(exclude={"is_valid_input", "confidence"}) == receipt.model_dump(
            exclude={"is_valid_input", "confidence"}
        )


class TestFieldSchemas:
    def test_schema_names(self) -> None:
        assert CHECK_SCHEMA.name == "Check"
        assert RECEIPT_SCHEMA.name == "Receipt"

    def test_definitions_use_wire_names(self) -> None:
        assert "checkNumber" in CHECK_SCHEMA.definition["properties"]
        assert "isValidInput" in CHECK_SCHEMA.definition["properties"]
        assert "receiptNumber" in RECEIPT_SCHEMA.definition["properties"]

    def test_instructions_present(self) -> None:
        assert "check" in CHECK_SCHEMA.instructions
        assert "receipt" in RECEIPT_SCHEMA.instructions
