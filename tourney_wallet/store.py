from typing import Dict, Iterable, Optional, Tuple

from pydantic import BaseModel

from tourney_wallet.config import OperationKey
from tourney_wallet.logging_config import get_logger
from tourney_wallet.schemas.wallet_schemas import (
    BalanceCheck,
    Pagination,
    PendingOrder,
    Transaction,
    Wallet,
    WalletStats,
)

logger = get_logger(__name__)


class OperationStatus(BaseModel):
    loading: bool = False
    error: Optional[str] = None


class WalletState(BaseModel):
    wallet: Optional[Wallet] = None
    stats: Optional[WalletStats] = None
    transactions: list[Transaction] = []
    transactionsPagination: Optional[Pagination] = None
    currentOrder: Optional[PendingOrder] = None
    balanceCheck: Optional[BalanceCheck] = None
    status: Dict[OperationKey, OperationStatus] = {}


def _initial_status() -> Dict[OperationKey, OperationStatus]:
    return {key: OperationStatus() for key in OperationKey}


class WalletStore:
    """
    Process-wide wallet state for one client session.

    Every mutation goes through a method on this class. Readers get copies, so
    the only way to change the wallet view is through the operations below.
    Balance is never derived from the transaction list: it is whatever the
    last ``apply_wallet_details`` call delivered.
    """

    def __init__(self) -> None:
        self._state = WalletState(status=_initial_status())
        self._sequence: Dict[OperationKey, int] = {key: 0 for key in OperationKey}

    # --- read access -----------------------------------------------------

    @property
    def wallet(self) -> Optional[Wallet]:
        return self._state.wallet.model_copy() if self._state.wallet else None

    @property
    def balance(self) -> float:
        return self._state.wallet.balance if self._state.wallet else 0

    @property
    def stats(self) -> Optional[WalletStats]:
        return self._state.stats.model_copy(deep=True) if self._state.stats else None

    @property
    def transactions(self) -> Tuple[Transaction, ...]:
        return tuple(self._state.transactions)

    @property
    def pagination(self) -> Optional[Pagination]:
        page = self._state.transactionsPagination
        return page.model_copy() if page else None

    @property
    def current_order(self) -> Optional[PendingOrder]:
        return self._state.currentOrder.model_copy() if self._state.currentOrder else None

    @property
    def balance_check(self) -> Optional[BalanceCheck]:
        return self._state.balanceCheck.model_copy() if self._state.balanceCheck else None

    def status(self, key: OperationKey) -> OperationStatus:
        return self._state.status[OperationKey(key)].model_copy()

    def snapshot(self) -> WalletState:
        return self._state.model_copy(deep=True)

    # --- loading / error slots ------------------------------------------

    def set_loading(self, key: OperationKey) -> None:
        slot = self._state.status[OperationKey(key)]
        slot.loading = True
        slot.error = None

    def set_error(self, key: OperationKey, message: str) -> None:
        slot = self._state.status[OperationKey(key)]
        slot.loading = False
        slot.error = message

    def clear_error(self, key: OperationKey | None = None) -> None:
        keys: Iterable[OperationKey] = [OperationKey(key)] if key else list(OperationKey)
        for k in keys:
            self._state.status[k].error = None

    # --- request fencing -------------------------------------------------

    def begin_request(self, key: OperationKey) -> int:
        key = OperationKey(key)
        self._sequence[key] += 1
        self.set_loading(key)
        return self._sequence[key]

    def is_current(self, key: OperationKey, seq: int) -> bool:
        return self._sequence[OperationKey(key)] == seq

    def finish_request(self, key: OperationKey, seq: int, error: str | None = None) -> bool:
        """
        Close out request ``seq``. Returns False (and changes nothing) when a
        newer request for the same key has been issued since.
        """
        key = OperationKey(key)
        if not self.is_current(key, seq):
            logger.info("Discarding stale response key=%s seq=%s latest=%s", key.value, seq, self._sequence[key])
            return False
        if error is not None:
            self.set_error(key, error)
        else:
            self._state.status[key].loading = False
        return True

    # --- data slices -----------------------------------------------------

    def apply_wallet_details(self, wallet: Wallet, stats: WalletStats) -> None:
        self._state = self._state.model_copy(update={"wallet": wallet, "stats": stats})

    def apply_transaction_page(self, items: list[Transaction], page: int, total_pages: int, total: int) -> None:
        self._state = self._state.model_copy(
            update={
                "transactions": list(items),
                "transactionsPagination": Pagination(currentPage=page, totalPages=total_pages, total=total),
            }
        )

    def prepend_optimistic_transaction(self, tx: Transaction) -> None:
        self._state.transactions.insert(0, tx)

    def set_current_order(self, order: PendingOrder) -> None:
        self._state.currentOrder = order

    def clear_current_order(self) -> None:
        self._state.currentOrder = None

    def set_balance_check(self, check: BalanceCheck) -> None:
        self._state.balanceCheck = check

    def clear_balance_check(self) -> None:
        self._state.balanceCheck = None

    def reset(self) -> None:
        self._state = WalletState(status=_initial_status())
        # sequences keep counting so responses to pre-reset requests stay stale
        for key in OperationKey:
            self._sequence[key] += 1


wallet_store = WalletStore()
