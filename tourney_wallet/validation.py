import math
import re
from typing import Any, Dict, Optional

from tourney_wallet.config import settings
from tourney_wallet.helpers import format_currency

IFSC_PATTERN = re.compile(r"^[A-Z]{4}0[A-Z0-9]{6}$")
ACCOUNT_NUMBER_PATTERN = re.compile(r"^\d{9,18}$")

WITHDRAWAL_FIELDS = (
    "amount",
    "accountNumber",
    "confirmAccountNumber",
    "ifscCode",
    "accountHolderName",
    "bankName",
)


def parse_amount(value: Any) -> Optional[float]:
    """Lenient numeric parse of user input; blanks and junk give None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        amount = float(value)
    else:
        text = str(value).strip().replace(",", "")
        if not text:
            return None
        try:
            amount = float(text)
        except ValueError:
            return None
    # nan and infinities compare false against every bound
    return amount if math.isfinite(amount) else None


def validate_deposit_amount(value: Any) -> Optional[str]:
    amount = parse_amount(value)
    if not amount or amount < settings.min_deposit:
        return f"Minimum deposit amount is {format_currency(settings.min_deposit)}"
    if amount > settings.max_deposit:
        return f"Maximum deposit amount is {format_currency(settings.max_deposit)}"
    return None


def normalize_ifsc(value: str) -> str:
    return (value or "").strip().upper()


def is_valid_ifsc(value: str) -> bool:
    return bool(IFSC_PATTERN.match(normalize_ifsc(value)))


def validate_withdrawal(amount: Any, bank_details: Dict[str, Any], available_balance: float) -> Dict[str, str]:
    """
    Check the whole withdrawal form at once and return ``{field: message}``
    for every failing field. An empty dict means the form can be submitted.
    """
    errors: Dict[str, str] = {}

    value = parse_amount(amount)
    if not value or value < settings.min_withdrawal:
        errors["amount"] = f"Minimum withdrawal amount is {format_currency(settings.min_withdrawal)}"
    elif value > available_balance:
        errors["amount"] = "Amount exceeds available balance"
    elif value > settings.max_withdrawal:
        errors["amount"] = (
            f"Maximum withdrawal amount is {format_currency(settings.max_withdrawal)} per transaction"
        )

    account_number = str(bank_details.get("accountNumber") or "").strip()
    if not account_number:
        errors["accountNumber"] = "Account number is required"
    elif not ACCOUNT_NUMBER_PATTERN.match(account_number):
        errors["accountNumber"] = "Account number must be 9-18 digits"

    if account_number != str(bank_details.get("confirmAccountNumber") or "").strip():
        errors["confirmAccountNumber"] = "Account numbers do not match"

    ifsc = normalize_ifsc(bank_details.get("ifscCode") or "")
    if not ifsc:
        errors["ifscCode"] = "IFSC code is required"
    elif not IFSC_PATTERN.match(ifsc):
        errors["ifscCode"] = "Invalid IFSC code format"

    holder = str(bank_details.get("accountHolderName") or "").strip()
    if not holder:
        errors["accountHolderName"] = "Account holder name is required"
    elif len(holder) < 2:
        errors["accountHolderName"] = "Name must be at least 2 characters"

    if not str(bank_details.get("bankName") or "").strip():
        errors["bankName"] = "Bank name is required"

    return errors
