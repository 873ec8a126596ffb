import logging
import math
import os
import uuid
from datetime import datetime, timezone
from typing import Any, Literal, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from sqlalchemy import JSON, Boolean, Column, DateTime, Float, Integer, String, create_engine, func as sa_func
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from starlette.exceptions import HTTPException as StarletteHTTPException

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("mock-wallet-api")

DB_URL = os.getenv("MOCK_WALLET_DB_URL", "sqlite:///./mock_wallet.db")
engine = create_engine(DB_URL, connect_args={"check_same_thread": False})
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

app = FastAPI(title="Mock Wallet API")

MIN_DEPOSIT = 10
MAX_DEPOSIT = 50000
MIN_WITHDRAWAL = 100
CREDIT_TYPES = ("prize_win", "refund", "bonus")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid.uuid4().hex[:24]


class WalletRecord(Base):
    __tablename__ = "wallets"
    id = Column(String, primary_key=True, default=_new_id)
    user_id = Column(String, unique=True, index=True, nullable=False)
    balance = Column(Float, nullable=False, default=0)
    total_earnings = Column(Float, nullable=False, default=0)
    total_spent = Column(Float, nullable=False, default=0)
    total_withdrawn = Column(Float, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    last_transaction_at = Column(DateTime(timezone=True), default=_utcnow)


class TransactionRecord(Base):
    __tablename__ = "transactions"
    seq = Column(Integer, primary_key=True)
    id = Column(String, unique=True, index=True, nullable=False, default=_new_id)
    user_id = Column(String, index=True, nullable=False)
    type = Column(String, nullable=False)
    amount = Column(Float, nullable=False)
    balance_before = Column(Float, nullable=False)
    balance_after = Column(Float, nullable=False)
    status = Column(String, nullable=False, default="pending")
    description = Column(String, nullable=False)
    reference = Column(JSON, nullable=False, default=dict)
    extra = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)


Base.metadata.create_all(bind=engine)


class AmountBody(BaseModel):
    amount: Optional[float] = None


class VerifyBody(BaseModel):
    model_config = ConfigDict(extra="allow")

    razorpay_order_id: Optional[str] = None
    razorpay_payment_id: Optional[str] = None
    razorpay_signature: Optional[str] = None


class FailedBody(BaseModel):
    orderId: str
    reason: Optional[str] = None


class WithdrawBody(BaseModel):
    amount: Optional[float] = None
    bankDetails: Optional[dict] = None


class CreditBody(BaseModel):
    userId: str
    amount: float
    type: Literal["prize_win", "refund", "bonus", "tournament_fee"]
    description: str
    tournamentId: Optional[str] = None


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def current_user(authorization: str | None = Header(None, alias="Authorization")) -> str:
    # the mock treats the bearer token itself as the user id
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Access denied. No token provided.")
    token = authorization.split(" ", 1)[1].strip()
    if not token:
        raise HTTPException(status_code=401, detail="Access denied. Invalid token.")
    return token


@app.exception_handler(StarletteHTTPException)
async def http_error(_request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"success": False, "message": exc.detail})


def _ok(data: Any, message: str) -> dict:
    return {"success": True, "data": data, "message": message}


def _iso(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def _get_wallet(db: Session, user_id: str) -> WalletRecord:
    wallet = db.query(WalletRecord).filter(WalletRecord.user_id == user_id).first()
    if not wallet:
        wallet = WalletRecord(user_id=user_id)
        db.add(wallet)
        db.commit()
        db.refresh(wallet)
        logger.info("Created wallet for user=%s", user_id)
    return wallet


def _serialize_wallet(wallet: WalletRecord) -> dict:
    return {
        "_id": wallet.id,
        "userId": wallet.user_id,
        "balance": wallet.balance,
        "totalEarnings": wallet.total_earnings,
        "totalSpent": wallet.total_spent,
        "totalWithdrawn": wallet.total_withdrawn,
        "isActive": wallet.is_active,
        "lastTransactionAt": _iso(wallet.last_transaction_at),
    }


def _serialize_transaction(txn: TransactionRecord) -> dict:
    return {
        "_id": txn.id,
        "type": txn.type,
        "amount": txn.amount,
        "balanceBefore": txn.balance_before,
        "balanceAfter": txn.balance_after,
        "status": txn.status,
        "description": txn.description,
        "reference": txn.reference or {},
        "createdAt": _iso(txn.created_at),
    }


def _wallet_stats(db: Session, wallet: WalletRecord) -> dict:
    rows = (
        db.query(TransactionRecord.type, sa_func.count(TransactionRecord.seq), sa_func.sum(TransactionRecord.amount))
        .filter(TransactionRecord.user_id == wallet.user_id)
        .group_by(TransactionRecord.type)
        .all()
    )
    return {
        "balance": wallet.balance,
        "totalEarnings": wallet.total_earnings,
        "totalSpent": wallet.total_spent,
        "totalWithdrawn": wallet.total_withdrawn,
        "transactionStats": [{"_id": t, "count": c, "totalAmount": s or 0} for t, c, s in rows],
    }


@app.get("/api/wallet")
async def wallet_details(user_id: str = Depends(current_user), db: Session = Depends(get_db)):
    wallet = _get_wallet(db, user_id)
    return _ok(
        {"wallet": _serialize_wallet(wallet), "stats": _wallet_stats(db, wallet)},
        "Wallet details retrieved successfully",
    )


@app.get("/api/wallet/transactions")
async def transaction_history(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    type: Optional[str] = None,
    user_id: str = Depends(current_user),
    db: Session = Depends(get_db),
):
    query = db.query(TransactionRecord).filter(TransactionRecord.user_id == user_id)
    if type:
        query = query.filter(TransactionRecord.type == type)
    total = query.count()
    records = (
        query.order_by(TransactionRecord.created_at.desc(), TransactionRecord.seq.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    logger.info("Listing transactions user=%s page=%s limit=%s type=%s total=%s", user_id, page, limit, type, total)
    return _ok(
        {
            "transactions": [_serialize_transaction(r) for r in records],
            "totalPages": math.ceil(total / limit),
            "currentPage": page,
            "total": total,
        },
        "Transaction history retrieved successfully",
    )


@app.post("/api/wallet/deposit/create-order")
async def create_deposit_order(body: AmountBody, user_id: str = Depends(current_user), db: Session = Depends(get_db)):
    if not body.amount or body.amount < MIN_DEPOSIT:
        raise HTTPException(status_code=400, detail="Minimum deposit amount is ₹10")
    if body.amount > MAX_DEPOSIT:
        raise HTTPException(status_code=400, detail="Maximum deposit amount is ₹50,000")
    wallet = _get_wallet(db, user_id)
    order_id = f"order_{uuid.uuid4().hex[:14]}"
    txn = TransactionRecord(
        user_id=user_id,
        type="deposit",
        amount=body.amount,
        balance_before=wallet.balance,
        balance_after=wallet.balance + body.amount,
        status="pending",
        description=f"Wallet deposit of ₹{body.amount:g}",
        reference={"orderId": order_id},
    )
    db.add(txn)
    db.commit()
    logger.info("Created deposit order user=%s order_id=%s amount=%s", user_id, order_id, body.amount)
    return _ok(
        {
            "orderId": order_id,
            # the payment gateway counts in paise
            "amount": int(round(body.amount * 100)),
            "currency": "INR",
            "transactionId": txn.id,
        },
        "Deposit order created successfully",
    )


def _pending_deposit(db: Session, user_id: str, order_id: str) -> TransactionRecord | None:
    pending = (
        db.query(TransactionRecord)
        .filter(TransactionRecord.user_id == user_id)
        .filter(TransactionRecord.type == "deposit")
        .filter(TransactionRecord.status == "pending")
        .all()
    )
    # reference is a JSON column, so match the order id in Python
    return next((t for t in pending if (t.reference or {}).get("orderId") == order_id), None)


@app.post("/api/wallet/deposit/verify")
async def verify_payment(body: VerifyBody, user_id: str = Depends(current_user), db: Session = Depends(get_db)):
    if not (body.razorpay_order_id and body.razorpay_payment_id and body.razorpay_signature):
        raise HTTPException(status_code=400, detail="Missing payment verification data")
    txn = _pending_deposit(db, user_id, body.razorpay_order_id)
    if not txn:
        raise HTTPException(status_code=400, detail="Payment verification failed: Transaction not found")
    wallet = _get_wallet(db, user_id)
    txn.balance_before = wallet.balance
    txn.balance_after = wallet.balance + txn.amount
    txn.status = "completed"
    txn.reference = {**(txn.reference or {}), "paymentId": body.razorpay_payment_id}
    wallet.balance = txn.balance_after
    wallet.last_transaction_at = _utcnow()
    db.add_all([txn, wallet])
    db.commit()
    db.refresh(txn)
    logger.info("Verified deposit user=%s order_id=%s balance=%s", user_id, body.razorpay_order_id, wallet.balance)
    return _ok({"success": True, "transaction": _serialize_transaction(txn)}, "Payment verified and wallet updated successfully")


@app.post("/api/wallet/deposit/failed")
async def deposit_failed(body: FailedBody, user_id: str = Depends(current_user), db: Session = Depends(get_db)):
    txn = _pending_deposit(db, user_id, body.orderId)
    if txn:
        txn.status = "failed"
        txn.extra = {**(txn.extra or {}), "failureReason": body.reason}
        db.add(txn)
        db.commit()
        logger.info("Marked deposit failed user=%s order_id=%s reason=%s", user_id, body.orderId, body.reason)
    return {"success": True, "message": "Payment failure handled successfully"}


@app.post("/api/wallet/withdraw")
async def withdraw(body: WithdrawBody, user_id: str = Depends(current_user), db: Session = Depends(get_db)):
    if not body.amount or not body.bankDetails:
        raise HTTPException(status_code=400, detail="Amount and bank details are required")
    details = body.bankDetails
    if not all(details.get(k) for k in ("accountNumber", "ifscCode", "accountHolderName", "bankName")):
        raise HTTPException(status_code=400, detail="Complete bank details are required")
    wallet = _get_wallet(db, user_id)
    if wallet.balance < body.amount:
        raise HTTPException(status_code=400, detail="Failed to create withdrawal request: Insufficient balance")
    if body.amount < MIN_WITHDRAWAL:
        raise HTTPException(status_code=400, detail="Failed to create withdrawal request: Minimum withdrawal amount is ₹100")
    txn = TransactionRecord(
        user_id=user_id,
        type="withdrawal",
        amount=-body.amount,
        balance_before=wallet.balance,
        balance_after=wallet.balance - body.amount,
        status="pending",
        description=f"Withdrawal request of ₹{body.amount:g}",
        reference={"withdrawalId": f"WD_{int(_utcnow().timestamp() * 1000)}_{user_id}"},
        extra={"bankDetails": details, "adminNotes": "Pending admin approval"},
    )
    # held against the balance while pending so later requests cannot spend it
    wallet.balance -= body.amount
    wallet.total_withdrawn += body.amount
    wallet.last_transaction_at = _utcnow()
    db.add_all([txn, wallet])
    db.commit()
    db.refresh(txn)
    logger.info("Created withdrawal request user=%s amount=%s", user_id, body.amount)
    return _ok(
        _serialize_transaction(txn),
        "Withdrawal request created successfully. It will be processed within 24-48 hours.",
    )


@app.post("/api/wallet/check-balance")
async def check_balance(body: AmountBody, user_id: str = Depends(current_user), db: Session = Depends(get_db)):
    wallet = _get_wallet(db, user_id)
    amount = body.amount or 0
    sufficient = wallet.balance >= amount
    return _ok(
        {"hasSufficientBalance": sufficient, "requiredAmount": amount},
        "Sufficient balance available" if sufficient else "Insufficient balance",
    )


@app.post("/admin/credit")
async def admin_credit(body: CreditBody, db: Session = Depends(get_db)):
    """
    Book a completed prize, refund, bonus or tournament fee against a wallet.
    """
    wallet = _get_wallet(db, body.userId)
    delta = body.amount if body.type in CREDIT_TYPES else -body.amount
    if wallet.balance + delta < 0:
        raise HTTPException(status_code=400, detail="Insufficient balance")
    txn = TransactionRecord(
        user_id=body.userId,
        type=body.type,
        amount=delta,
        balance_before=wallet.balance,
        balance_after=wallet.balance + delta,
        status="completed",
        description=body.description,
        reference={"tournamentId": body.tournamentId} if body.tournamentId else {},
    )
    wallet.balance += delta
    if body.type in ("prize_win", "bonus"):
        wallet.total_earnings += body.amount
    elif body.type == "tournament_fee":
        wallet.total_spent += body.amount
    wallet.last_transaction_at = _utcnow()
    db.add_all([txn, wallet])
    db.commit()
    db.refresh(txn)
    return _serialize_transaction(txn)


@app.post("/admin/clear-db")
async def clear_db(db: Session = Depends(get_db)):
    """
    Dangerous: clears all mock wallets and transactions.
    """
    db.query(TransactionRecord).delete()
    db.query(WalletRecord).delete()
    db.commit()
    logger.warning("Cleared mock wallet data via admin endpoint")
    return {"status": "cleared"}


@app.get("/health")
async def health():
    return {"status": "ok"}
