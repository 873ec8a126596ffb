from typing import Any, Awaitable, Callable, Dict, Optional

from tourney_wallet.config import DepositStep, OperationKey, QUICK_DEPOSIT_AMOUNTS, WithdrawStep
from tourney_wallet.errors import ErrorKind, OperationResult
from tourney_wallet.gateway import WalletGateway
from tourney_wallet.helpers import format_currency
from tourney_wallet.logging_config import get_logger
from tourney_wallet.schemas.wallet_schemas import PendingOrder, Transaction
from tourney_wallet.validation import (
    WITHDRAWAL_FIELDS,
    normalize_ifsc,
    parse_amount,
    validate_deposit_amount,
    validate_withdrawal,
)

logger = get_logger(__name__)

# Receives the created order, runs the payment provider's checkout and
# returns its confirmation payload, or None when the user abandons it.
Checkout = Callable[[PendingOrder], Awaitable[Optional[Dict[str, Any]]]]


class DepositFlow:
    """
    Deposit dialog: ``amount -> processing -> success``.

    With a ``checkout`` callback the flow waits in ``processing`` until the
    provider confirms and the payment is verified. Without one it reaches
    ``success`` once the order exists.
    """

    quick_amounts = QUICK_DEPOSIT_AMOUNTS

    def __init__(self, gateway: WalletGateway, checkout: Checkout | None = None):
        self.gateway = gateway
        self.checkout = checkout
        self.is_open = False
        self._reset()

    def _reset(self) -> None:
        self.step = DepositStep.AMOUNT
        self.amount = ""
        self.selected_amount: Optional[int] = None
        self.validation_error: Optional[str] = None
        self.success_message: Optional[str] = None

    def open(self) -> None:
        self._reset()
        self.gateway.clear_current_order()
        self.gateway.clear_error(OperationKey.DEPOSIT)
        self.is_open = True

    async def close(self) -> None:
        if self.step == DepositStep.SUCCESS:
            await self.gateway.fetch_wallet_details()
        self.is_open = False
        self._reset()
        self.gateway.clear_current_order()

    def select_quick_amount(self, value: int) -> None:
        self.selected_amount = value
        self.amount = str(value)
        self.validation_error = None

    def set_custom_amount(self, value: str) -> None:
        self.amount = value
        self.selected_amount = None
        self.validation_error = None

    @property
    def error(self) -> Optional[str]:
        return self.gateway.store.status(OperationKey.DEPOSIT).error

    @property
    def can_submit(self) -> bool:
        loading = self.gateway.store.status(OperationKey.DEPOSIT).loading
        return bool(self.amount) and not loading and self.step == DepositStep.AMOUNT

    async def submit(self) -> OperationResult:
        message = validate_deposit_amount(self.amount)
        if message:
            self.validation_error = message
            return OperationResult.failure(ErrorKind.VALIDATION, message)

        amount = parse_amount(self.amount)
        self.step = DepositStep.PROCESSING
        result = await self.gateway.create_deposit_order(amount)
        if not result.ok:
            self.step = DepositStep.AMOUNT
            return result

        if self.checkout is not None:
            confirmed = await self._confirm_payment(result.data)
            if not confirmed.ok:
                self.step = DepositStep.AMOUNT
                return confirmed

        self.step = DepositStep.SUCCESS
        self.success_message = f"{format_currency(amount)} has been added to your wallet successfully."
        await self.gateway.fetch_wallet_details()
        logger.info("Deposit flow completed amount=%s", amount)
        return result

    async def _confirm_payment(self, order: PendingOrder) -> OperationResult:
        payment_data = await self.checkout(order)
        if not payment_data:
            logger.info("Checkout abandoned order_id=%s", order.orderId)
            await self.gateway.report_payment_failure(order.orderId, "Payment cancelled by user")
            return OperationResult.failure(ErrorKind.CANCELLED, "Payment cancelled")
        verified = await self.gateway.verify_payment(payment_data)
        if not verified.ok and not verified.cancelled:
            await self.gateway.report_payment_failure(order.orderId, verified.error.message)
            # the report reuses the deposit slot; the verification message stays in it
            self.gateway.store.set_error(OperationKey.DEPOSIT, verified.error.message)
        return verified


class WithdrawFlow:
    """Withdraw dialog: ``form -> success``; the form is validated as a whole."""

    def __init__(self, gateway: WalletGateway):
        self.gateway = gateway
        self.is_open = False
        self.available_balance = 0.0
        self._reset()

    def _reset(self) -> None:
        self.step = WithdrawStep.FORM
        self.amount = ""
        self.bank_details: Dict[str, str] = {
            "accountNumber": "",
            "confirmAccountNumber": "",
            "ifscCode": "",
            "accountHolderName": "",
            "bankName": "",
        }
        self.errors: Dict[str, str] = {}
        self.submitted: Optional[Transaction] = None

    def open(self, available_balance: float | None = None) -> None:
        self._reset()
        self.available_balance = self.gateway.store.balance if available_balance is None else available_balance
        self.gateway.clear_error(OperationKey.WITHDRAWAL)
        self.is_open = True

    def close(self) -> None:
        self.is_open = False
        self._reset()

    def set_amount(self, value: str) -> None:
        self.amount = value
        self.errors.pop("amount", None)

    def set_field(self, field: str, value: str) -> None:
        if field not in WITHDRAWAL_FIELDS or field == "amount":
            raise KeyError(field)
        self.bank_details[field] = normalize_ifsc(value) if field == "ifscCode" else value
        # editing a field clears only that field's error
        self.errors.pop(field, None)

    def validate(self) -> Dict[str, str]:
        self.errors = validate_withdrawal(self.amount, self.bank_details, self.available_balance)
        return dict(self.errors)

    @property
    def error(self) -> Optional[str]:
        return self.gateway.store.status(OperationKey.WITHDRAWAL).error

    async def submit(self) -> OperationResult:
        errors = self.validate()
        if errors:
            logger.info("Withdrawal form rejected fields=%s", sorted(errors))
            return OperationResult.failure(ErrorKind.VALIDATION, "; ".join(errors.values()), cause=errors)

        details = {k: v for k, v in self.bank_details.items() if k != "confirmAccountNumber"}
        result = await self.gateway.create_withdrawal_request(parse_amount(self.amount), details)
        if result.ok:
            self.step = WithdrawStep.SUCCESS
            self.submitted = result.data
        return result
