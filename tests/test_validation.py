import pytest

from tourney_wallet.helpers import format_currency
from tourney_wallet.validation import (
    is_valid_ifsc,
    parse_amount,
    validate_deposit_amount,
    validate_withdrawal,
)


def _form(**overrides):
    form = {
        "accountNumber": "123456789012",
        "confirmAccountNumber": "123456789012",
        "ifscCode": "SBIN0001234",
        "accountHolderName": "Arjun Rao",
        "bankName": "State Bank of India",
    }
    form.update(overrides)
    return form


@pytest.mark.parametrize("amount", [0, 5, 9.99, -100, "", "abc", None])
def test_deposit_below_minimum_rejected(amount):
    assert validate_deposit_amount(amount) == "Minimum deposit amount is ₹10"


@pytest.mark.parametrize("amount", [50000.01, 50001, "75000"])
def test_deposit_above_maximum_rejected(amount):
    assert validate_deposit_amount(amount) == "Maximum deposit amount is ₹50,000"


@pytest.mark.parametrize("amount", [10, "500", 50000])
def test_deposit_within_bounds_accepted(amount):
    assert validate_deposit_amount(amount) is None


@pytest.mark.parametrize("amount", ["nan", "NaN", "inf", "-inf", "Infinity", float("nan"), float("inf")])
def test_non_finite_amounts_rejected(amount):
    assert parse_amount(amount) is None
    assert validate_deposit_amount(amount) == "Minimum deposit amount is ₹10"
    assert validate_withdrawal(amount, _form(), 1000) == {"amount": "Minimum withdrawal amount is ₹100"}


def test_parse_amount_handles_grouping_and_junk():
    assert parse_amount("1,000") == 1000.0
    assert parse_amount("  250 ") == 250.0
    assert parse_amount("12a") is None
    assert parse_amount(True) is None


def test_valid_withdrawal_has_no_errors():
    assert validate_withdrawal("500", _form(), available_balance=1000) == {}


@pytest.mark.parametrize("amount", ["99", "0", ""])
def test_withdrawal_below_minimum(amount):
    errors = validate_withdrawal(amount, _form(), available_balance=100000)
    assert errors == {"amount": "Minimum withdrawal amount is ₹100"}


def test_withdrawal_above_balance():
    errors = validate_withdrawal("600", _form(), available_balance=500)
    assert errors == {"amount": "Amount exceeds available balance"}


def test_withdrawal_above_per_transaction_cap():
    errors = validate_withdrawal("50001", _form(), available_balance=100000)
    assert errors == {"amount": "Maximum withdrawal amount is ₹50,000 per transaction"}


def test_ifsc_examples():
    assert is_valid_ifsc("SBIN0001234")
    assert not is_valid_ifsc("SBIN1001234")
    assert is_valid_ifsc("sbin0001234")


def test_lowercase_ifsc_passes_form_validation():
    assert validate_withdrawal("500", _form(ifscCode="sbin0001234"), available_balance=1000) == {}


def test_bad_ifsc_reported():
    errors = validate_withdrawal("500", _form(ifscCode="SBIN1001234"), available_balance=1000)
    assert errors == {"ifscCode": "Invalid IFSC code format"}


def test_account_number_length():
    short = validate_withdrawal("500", _form(accountNumber="12345678", confirmAccountNumber="12345678"), 1000)
    assert short == {"accountNumber": "Account number must be 9-18 digits"}
    ok = validate_withdrawal("500", _form(accountNumber="123456789", confirmAccountNumber="123456789"), 1000)
    assert ok == {}
    letters = validate_withdrawal("500", _form(accountNumber="12345678X", confirmAccountNumber="12345678X"), 1000)
    assert "accountNumber" in letters


def test_confirmation_must_match():
    errors = validate_withdrawal("500", _form(confirmAccountNumber="123456789013"), 1000)
    assert errors == {"confirmAccountNumber": "Account numbers do not match"}


def test_every_failing_field_reported_together():
    errors = validate_withdrawal(
        "50",
        {
            "accountNumber": "1234",
            "confirmAccountNumber": "4321",
            "ifscCode": "BAD",
            "accountHolderName": "A",
            "bankName": " ",
        },
        available_balance=1000,
    )
    assert set(errors) == {
        "amount",
        "accountNumber",
        "confirmAccountNumber",
        "ifscCode",
        "accountHolderName",
        "bankName",
    }
    assert errors["accountHolderName"] == "Name must be at least 2 characters"
    assert errors["bankName"] == "Bank name is required"


def test_empty_form_reports_required_fields():
    errors = validate_withdrawal("", {}, available_balance=1000)
    assert errors["accountNumber"] == "Account number is required"
    assert errors["ifscCode"] == "IFSC code is required"
    assert errors["accountHolderName"] == "Account holder name is required"
    assert "confirmAccountNumber" not in errors


@pytest.mark.parametrize(
    "amount,expected",
    [
        (0, "₹0"),
        (500, "₹500"),
        (999.6, "₹1,000"),
        (50000, "₹50,000"),
        (100000, "₹1,00,000"),
        (12345678, "₹1,23,45,678"),
        (-2500, "-₹2,500"),
    ],
)
def test_format_currency_indian_grouping(amount, expected):
    assert format_currency(amount) == expected
