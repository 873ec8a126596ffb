import asyncio
import time
from typing import Any, Awaitable, Callable, Optional

from pydantic import ValidationError

from tourney_wallet.config import OperationKey, TransactionType, operation_fallback_messages, settings
from tourney_wallet.contracts.contracts import (
    AmountRequest,
    PaymentFailure,
    PaymentVerification,
    TransactionQuery,
    WithdrawalPayload,
)
from tourney_wallet.errors import ErrorKind, OperationResult, WalletApiError
from tourney_wallet.helpers import WalletApiClient
from tourney_wallet.logging_config import get_logger
from tourney_wallet.schemas.wallet_schemas import (
    BalanceCheck,
    BankDetails,
    PendingOrder,
    Transaction,
    TransactionPage,
    WalletDetails,
)
from tourney_wallet.store import WalletStore, wallet_store

logger = get_logger(__name__)


class WalletGateway:
    """
    Async wallet operations. Each one records loading and error state in the
    store under its operation key and hands back an ``OperationResult``;
    failures never propagate as exceptions past this class.
    """

    def __init__(
        self,
        store: WalletStore | None = None,
        client: WalletApiClient | None = None,
        cancel_debounce_seconds: float | None = None,
    ):
        self.store = store if store is not None else wallet_store
        self.client = client if client is not None else WalletApiClient()
        self.cancel_debounce_seconds = (
            cancel_debounce_seconds if cancel_debounce_seconds is not None else settings.cancel_debounce_seconds
        )
        self._list_fetch: Optional[asyncio.Task] = None
        self._list_fetch_started_at: float = 0.0
        self._superseded: set = set()

    async def _run(
        self,
        key: OperationKey,
        call: Callable[[], Awaitable[Any]],
        on_success: Callable[[Any], Any],
    ) -> OperationResult:
        seq = self.store.begin_request(key)
        try:
            raw = await call()
            value = on_success(raw) if self.store.is_current(key, seq) else None
        except WalletApiError as exc:
            if not self.store.finish_request(key, seq, error=exc.message):
                return OperationResult.failure(ErrorKind.CANCELLED, "Superseded by a newer request")
            logger.warning("Wallet operation failed key=%s kind=%s message=%s", key.value, exc.kind.value, exc.message)
            return OperationResult(ok=False, error=exc.to_error())
        except ValidationError as exc:
            message = operation_fallback_messages[key]
            if not self.store.finish_request(key, seq, error=message):
                return OperationResult.failure(ErrorKind.CANCELLED, "Superseded by a newer request")
            logger.warning("Malformed wallet API payload key=%s error=%s", key.value, exc)
            return OperationResult.failure(ErrorKind.SERVER_REJECTION, message, cause=exc)
        if not self.store.finish_request(key, seq):
            return OperationResult.failure(ErrorKind.CANCELLED, "Superseded by a newer request")
        return OperationResult.success(value)

    async def _post(self, url: str, fallback_message: str, build: Callable[[], Any]) -> Any:
        try:
            body = build().model_dump()
        except ValidationError as exc:
            raise WalletApiError(ErrorKind.VALIDATION, "Invalid request data", cause=exc) from exc
        return await self.client.request("POST", url, fallback_message, json=body)

    async def fetch_wallet_details(self) -> OperationResult:
        def apply(raw):
            details = WalletDetails.model_validate(raw)
            self.store.apply_wallet_details(details.wallet, details.stats)
            logger.info("Fetched wallet details balance=%s", details.wallet.balance)
            return details

        return await self._run(
            OperationKey.WALLET,
            lambda: self.client.request("GET", "/wallet", "Failed to fetch wallet details"),
            apply,
        )

    async def fetch_transaction_history(
        self,
        page: int = 1,
        limit: int | None = None,
        type: TransactionType | str | None = None,
    ) -> OperationResult:
        limit = settings.transactions_page_size if limit is None else limit
        if page < 1:
            raise ValueError("page must be >= 1")
        if limit <= 0:
            raise ValueError("limit must be > 0")
        query = TransactionQuery(page=page, limit=limit, type=TransactionType(type) if type else None)

        self._cancel_superseded_list_fetch()
        task = asyncio.ensure_future(self._fetch_transaction_page(query))
        self._list_fetch = task
        self._list_fetch_started_at = time.monotonic()
        try:
            return await task
        except asyncio.CancelledError:
            if task not in self._superseded:
                raise
            self._superseded.discard(task)
            logger.info("Dropped superseded transactions fetch page=%s type=%s", page, query.type)
            return OperationResult.failure(ErrorKind.CANCELLED, "Superseded by a newer request")
        finally:
            if self._list_fetch is task:
                self._list_fetch = None

    def _cancel_superseded_list_fetch(self) -> None:
        previous = self._list_fetch
        if previous is None or previous.done():
            return
        # duplicate fetches issued back-to-back are left alone; fencing drops the older one
        if time.monotonic() - self._list_fetch_started_at <= self.cancel_debounce_seconds:
            return
        self._superseded.add(previous)
        previous.cancel()

    async def _fetch_transaction_page(self, query: TransactionQuery) -> OperationResult:
        def apply(raw):
            page = TransactionPage.model_validate(raw)
            self.store.apply_transaction_page(page.items, page.currentPage, page.totalPages, page.totalCount)
            logger.info(
                "Fetched transactions page=%s total_pages=%s total=%s type=%s",
                page.currentPage,
                page.totalPages,
                page.totalCount,
                query.type.value if query.type else None,
            )
            return page

        return await self._run(
            OperationKey.TRANSACTIONS,
            lambda: self.client.request(
                "GET", "/wallet/transactions", "Failed to fetch transactions", params=query.to_params()
            ),
            apply,
        )

    async def create_deposit_order(self, amount: float) -> OperationResult:
        def apply(raw):
            order = PendingOrder.model_validate(raw)
            self.store.set_current_order(order)
            logger.info("Created deposit order order_id=%s amount=%s", order.orderId, order.amount)
            return order

        return await self._run(
            OperationKey.DEPOSIT,
            lambda: self._post(
                "/wallet/deposit/create-order",
                "Failed to create deposit order",
                lambda: AmountRequest(amount=amount),
            ),
            apply,
        )

    async def verify_payment(self, payment_data: dict) -> OperationResult:
        def apply(raw):
            # balance stays as-is until the next fetch_wallet_details
            self.store.clear_current_order()
            logger.info("Payment verified")
            return raw

        result = await self._run(
            OperationKey.DEPOSIT,
            lambda: self._post(
                "/wallet/deposit/verify",
                "Payment verification failed",
                lambda: PaymentVerification.model_validate(payment_data),
            ),
            apply,
        )
        if not result.ok and not result.cancelled:
            # a rejected verification ends the order as well
            self.store.clear_current_order()
        return result

    async def report_payment_failure(self, order_id: str, reason: str) -> OperationResult:
        def apply(raw):
            self.store.clear_current_order()
            logger.info("Reported payment failure order_id=%s reason=%s", order_id, reason)
            return raw

        return await self._run(
            OperationKey.DEPOSIT,
            lambda: self._post(
                "/wallet/deposit/failed",
                "Failed to report payment failure",
                lambda: PaymentFailure(orderId=order_id, reason=reason),
            ),
            apply,
        )

    async def create_withdrawal_request(self, amount: float, bank_details: BankDetails | dict) -> OperationResult:
        def apply(raw):
            tx = Transaction.model_validate(raw)
            self.store.prepend_optimistic_transaction(tx)
            logger.info("Created withdrawal request transaction_id=%s amount=%s", tx.id, tx.amount)
            return tx

        if isinstance(bank_details, BankDetails):
            bank_details = bank_details.model_dump()
        return await self._run(
            OperationKey.WITHDRAWAL,
            lambda: self._post(
                "/wallet/withdraw",
                "Failed to create withdrawal request",
                lambda: WithdrawalPayload.from_form(amount, bank_details),
            ),
            apply,
        )

    async def check_balance(self, amount: float) -> OperationResult:
        def apply(raw):
            check = BalanceCheck.model_validate(raw)
            self.store.set_balance_check(check)
            return check

        return await self._run(
            OperationKey.BALANCE_CHECK,
            lambda: self._post("/wallet/check-balance", "Failed to check balance", lambda: AmountRequest(amount=amount)),
            apply,
        )

    def clear_error(self, key: OperationKey | None = None) -> None:
        self.store.clear_error(key)

    def clear_current_order(self) -> None:
        self.store.clear_current_order()

    def clear_balance_check(self) -> None:
        self.store.clear_balance_check()

    async def aclose(self) -> None:
        await self.client.aclose()
