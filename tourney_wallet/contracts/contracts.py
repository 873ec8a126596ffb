from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

from tourney_wallet.config import TransactionType
from tourney_wallet.schemas.wallet_schemas import BankDetails


class AmountRequest(BaseModel):
    amount: float


class TransactionQuery(BaseModel):
    page: int
    limit: int
    type: Optional[TransactionType] = None

    def to_params(self) -> dict:
        params = {"page": self.page, "limit": self.limit}
        if self.type:
            params["type"] = self.type.value
        return params


class PaymentVerification(BaseModel):
    # the gateway payload is opaque to the client
    model_config = ConfigDict(extra="allow")


class PaymentFailure(BaseModel):
    orderId: str
    reason: str


class WithdrawalPayload(BaseModel):
    amount: float
    bankDetails: BankDetails

    @classmethod
    def from_form(cls, amount: Any, form: dict) -> "WithdrawalPayload":
        return cls(
            amount=amount,
            bankDetails=BankDetails(
                accountNumber=str(form.get("accountNumber", "")).strip(),
                ifscCode=str(form.get("ifscCode", "")).strip().upper(),
                accountHolderName=str(form.get("accountHolderName", "")).strip(),
                bankName=str(form.get("bankName", "")).strip(),
            ),
        )
