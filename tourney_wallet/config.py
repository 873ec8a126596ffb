from enum import Enum
from pathlib import Path
from pydantic import AnyHttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    api_base_url: AnyHttpUrl = "http://localhost:5001/api"
    bearer_token: Optional[str] = None
    token_file: Path = Path.home() / ".tourney_wallet" / "session.json"
    request_timeout_seconds: float = 10.0
    cancel_debounce_seconds: float = 0.1
    transactions_page_size: int = 20
    currency_symbol: str = "₹"
    log_level: str = "INFO"
    min_deposit: float = 10
    max_deposit: float = 50000
    min_withdrawal: float = 100
    max_withdrawal: float = 50000

settings = Settings()

class TransactionType(str, Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    TOURNAMENT_FEE = "tournament_fee"
    PRIZE_WIN = "prize_win"
    REFUND = "refund"
    BONUS = "bonus"

class TransactionStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

class OperationKey(str, Enum):
    WALLET = "wallet"
    TRANSACTIONS = "transactions"
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    BALANCE_CHECK = "balanceCheck"

class DepositStep(str, Enum):
    AMOUNT = "amount"
    PROCESSING = "processing"
    SUCCESS = "success"

class WithdrawStep(str, Enum):
    FORM = "form"
    SUCCESS = "success"

ALL_TRANSACTIONS = "all"

transaction_filter_labels = {
    ALL_TRANSACTIONS: "All Transactions",
    TransactionType.DEPOSIT.value: "Deposits",
    TransactionType.WITHDRAWAL.value: "Withdrawals",
    TransactionType.TOURNAMENT_FEE.value: "Tournament Fees",
    TransactionType.PRIZE_WIN.value: "Prize Winnings",
    TransactionType.REFUND.value: "Refunds",
    TransactionType.BONUS.value: "Bonuses",
}

# credit types show as incoming money, everything else as outgoing
credit_transaction_types = {
    TransactionType.DEPOSIT,
    TransactionType.PRIZE_WIN,
    TransactionType.BONUS,
    TransactionType.REFUND,
}

operation_fallback_messages = {
    OperationKey.WALLET: "Failed to fetch wallet details",
    OperationKey.TRANSACTIONS: "Failed to fetch transactions",
    OperationKey.DEPOSIT: "Failed to create deposit order",
    OperationKey.WITHDRAWAL: "Failed to create withdrawal request",
    OperationKey.BALANCE_CHECK: "Failed to check balance",
}

QUICK_DEPOSIT_AMOUNTS = [100, 500, 1000, 2000, 5000, 10000]
