from datetime import timedelta, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel

from tourney_wallet.config import (
    ALL_TRANSACTIONS,
    OperationKey,
    TransactionType,
    credit_transaction_types,
    settings,
    transaction_filter_labels,
)
from tourney_wallet.errors import OperationResult
from tourney_wallet.gateway import WalletGateway
from tourney_wallet.helpers import format_currency
from tourney_wallet.logging_config import get_logger
from tourney_wallet.pagination import PaginationControl, build_pagination
from tourney_wallet.schemas.wallet_schemas import Transaction

logger = get_logger(__name__)

# IST, no DST
DISPLAY_TZ = timezone(timedelta(hours=5, minutes=30))


class HistoryState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    ERROR = "error"


class FilterOption(BaseModel):
    value: str
    label: str
    selected: bool = False


class TransactionRow(BaseModel):
    id: str
    type: str
    direction: str
    amount: str
    status: str
    description: str
    date: str
    time: str


def to_row(tx: Transaction) -> TransactionRow:
    credit = tx.type in credit_transaction_types
    created = tx.createdAt.astimezone(DISPLAY_TZ) if tx.createdAt.tzinfo else tx.createdAt
    return TransactionRow(
        id=tx.id,
        type=tx.type.value,
        direction="credit" if credit else "debit",
        amount=("+" if tx.amount > 0 else "-") + format_currency(abs(tx.amount)),
        status=tx.status.value,
        description=tx.description,
        date=created.strftime("%d %b %Y"),
        time=created.strftime("%I:%M %p").lower(),
    )


class TransactionHistoryView:
    """
    Paginated, filterable transaction list over the wallet store.

    Nothing is cached per page: every page or filter change fetches afresh
    and the store replaces the previous items wholesale.
    """

    def __init__(self, gateway: WalletGateway, limit: int | None = None):
        self.gateway = gateway
        self.limit = limit or settings.transactions_page_size
        self.current_page = 1
        self.filter_type = ALL_TRANSACTIONS
        self.state = HistoryState.IDLE

    @property
    def store(self):
        return self.gateway.store

    async def load(self) -> OperationResult:
        self.state = HistoryState.LOADING
        type_filter = None if self.filter_type == ALL_TRANSACTIONS else self.filter_type
        result = await self.gateway.fetch_transaction_history(page=self.current_page, limit=self.limit, type=type_filter)
        if result.cancelled:
            # a newer load owns the state now
            return result
        self.state = HistoryState.LOADED if result.ok else HistoryState.ERROR
        return result

    async def change_page(self, page: int) -> OperationResult:
        pagination = self.store.pagination
        if page < 1 or (pagination and page > max(pagination.totalPages, 1)):
            raise ValueError(f"page {page} out of range")
        self.current_page = page
        return await self.load()

    async def change_filter(self, filter_type: str) -> OperationResult:
        if filter_type != ALL_TRANSACTIONS:
            filter_type = TransactionType(filter_type).value
        logger.info("Transaction filter changed from=%s to=%s", self.filter_type, filter_type)
        self.filter_type = filter_type
        self.current_page = 1
        return await self.load()

    def filter_options(self) -> List[FilterOption]:
        return [
            FilterOption(value=value, label=label, selected=value == self.filter_type)
            for value, label in transaction_filter_labels.items()
        ]

    @property
    def filter_label(self) -> str:
        return transaction_filter_labels[self.filter_type]

    @property
    def error(self) -> Optional[str]:
        return self.store.status(OperationKey.TRANSACTIONS).error

    def dismiss_error(self) -> None:
        self.store.clear_error(OperationKey.TRANSACTIONS)

    def rows(self) -> List[TransactionRow]:
        return [to_row(tx) for tx in self.store.transactions]

    def pagination(self) -> Optional[PaginationControl]:
        pagination = self.store.pagination
        if pagination is None:
            return None
        return build_pagination(pagination.currentPage, pagination.totalPages)
