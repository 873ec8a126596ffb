from datetime import datetime
from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from typing import Optional, Any, List

from tourney_wallet.config import TransactionStatus, TransactionType


class Wallet(BaseModel):
    id: Optional[str] = Field(None, validation_alias=AliasChoices("_id", "id"))
    userId: str
    balance: float = Field(0, ge=0)
    totalEarnings: float = 0
    totalSpent: float = 0
    totalWithdrawn: float = 0
    isActive: bool = True
    lastTransactionAt: Optional[datetime] = None

class TransactionStat(BaseModel):
    type: str = Field(validation_alias=AliasChoices("_id", "type"))
    count: int
    totalAmount: float

class WalletStats(BaseModel):
    balance: float = 0
    totalEarnings: float = 0
    totalSpent: float = 0
    totalWithdrawn: float = 0
    transactionStats: List[TransactionStat] = []

class WalletDetails(BaseModel):
    wallet: Wallet
    stats: WalletStats

class TransactionReference(BaseModel):
    tournamentId: Optional[Any] = None
    matchId: Optional[str] = None
    paymentId: Optional[str] = None
    orderId: Optional[str] = None
    withdrawalId: Optional[str] = None

class Transaction(BaseModel):
    id: str = Field(validation_alias=AliasChoices("_id", "id"))
    type: TransactionType
    amount: float
    status: TransactionStatus = TransactionStatus.PENDING
    balanceAfter: float
    description: str
    createdAt: datetime
    reference: Optional[TransactionReference] = None

class TransactionPage(BaseModel):
    items: List[Transaction] = Field(validation_alias=AliasChoices("transactions", "items"))
    currentPage: int
    totalPages: int
    totalCount: int = Field(validation_alias=AliasChoices("total", "totalCount"))

class Pagination(BaseModel):
    currentPage: int
    totalPages: int
    total: int

class PendingOrder(BaseModel):
    # whatever else the payment gateway returns is kept as-is
    model_config = ConfigDict(extra="allow")

    orderId: str
    amount: float
    currency: str = "INR"
    transactionId: Optional[str] = None

class BalanceCheck(BaseModel):
    hasSufficientBalance: bool
    requiredAmount: float

class BankDetails(BaseModel):
    accountNumber: str
    ifscCode: str
    accountHolderName: str
    bankName: str

class ApiEnvelope(BaseModel):
    success: bool
    data: Optional[Any] = None
    message: Optional[str] = None
