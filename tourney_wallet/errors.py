from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    NETWORK = "network"
    TIMEOUT = "timeout"
    SERVER_REJECTION = "server_rejection"
    CANCELLED = "cancelled"


class GatewayError(BaseModel):
    """Display-ready failure of a wallet operation."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    kind: ErrorKind
    message: str
    cause: Optional[Any] = None


class WalletApiError(Exception):
    def __init__(self, kind: ErrorKind, message: str, cause: Any = None, status_code: int | None = None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.cause = cause
        self.status_code = status_code

    def to_error(self) -> GatewayError:
        return GatewayError(kind=self.kind, message=self.message, cause=self.cause)


class OperationResult(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    ok: bool
    data: Optional[Any] = None
    error: Optional[GatewayError] = None

    @classmethod
    def success(cls, data: Any = None) -> "OperationResult":
        return cls(ok=True, data=data)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str, cause: Any = None) -> "OperationResult":
        return cls(ok=False, error=GatewayError(kind=kind, message=message, cause=cause))

    @property
    def cancelled(self) -> bool:
        return self.error is not None and self.error.kind == ErrorKind.CANCELLED
