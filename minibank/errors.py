from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    INVALID_AMOUNT = "INVALID_AMOUNT"
    ACCOUNT_NOT_FOUND = "ACCOUNT_NOT_FOUND"
    INVALID_ACCOUNT_TYPE = "INVALID_ACCOUNT_TYPE"
    INSUFFICIENT_FUNDS = "INSUFFICIENT_FUNDS"
    SAME_ACCOUNT_TRANSFER = "SAME_ACCOUNT_TRANSFER"
    PENDING_TRANSACTION = "PENDING_TRANSACTION"
    ASSET_NOT_FOUND = "ASSET_NOT_FOUND"
    INVESTMENT_ACCOUNT_NOT_FOUND = "INVESTMENT_ACCOUNT_NOT_FOUND"
    BELOW_MINIMUM_INVESTMENT = "BELOW_MINIMUM_INVESTMENT"
    # reserved until positions are tracked
    INSUFFICIENT_ASSET_QUANTITY = "INSUFFICIENT_ASSET_QUANTITY"


_NOT_FOUND = {
    ErrorKind.ACCOUNT_NOT_FOUND,
    ErrorKind.ASSET_NOT_FOUND,
    ErrorKind.INVESTMENT_ACCOUNT_NOT_FOUND,
}

STATUS_BY_KIND = {kind: 404 if kind in _NOT_FOUND else 400 for kind in ErrorKind}


class LedgerError(Exception):
    """A business rule rejected a ledger operation.

    ``kind`` is the discriminant callers branch on; ``message`` is meant for
    humans and may change wording freely.
    """

    def __init__(self, kind: ErrorKind, message: str, cause: Optional[str] = None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.cause = cause

    @property
    def status_code(self) -> int:
        return STATUS_BY_KIND[self.kind]

    def __repr__(self):
        return f"LedgerError({self.kind.value}, {self.message!r})"


class AuthError(Exception):
    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
