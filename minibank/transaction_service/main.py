from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from ..account_service.store import AccountStore
from ..dependencies import get_accounts, get_history, get_ledger
from ..ledger_service.engine import LedgerEngine
from ..ledger_service.history import HistoryReader, MAX_QUERY_LIMIT
from ..models import Account, AccountType
from ..security import get_user

router = APIRouter(prefix="/transactions", tags=["transactions"])


class AmountIn(BaseModel):
    amount: float = Field(gt=0)


class TransferIn(BaseModel):
    amount: float = Field(gt=0)
    toAccountId: str = Field(min_length=1)
    fromAccountType: AccountType
    description: Optional[str] = None


def _own_account(store: AccountStore, user: int, type: AccountType) -> Account:
    acc = store.find_user_account(user, type)
    if not acc:
        raise HTTPException(404, "Account not found")
    return acc


@router.post("/deposit", status_code=201)
def deposit(body: AmountIn, user: int = Depends(get_user), store: AccountStore = Depends(get_accounts),
            ledger: LedgerEngine = Depends(get_ledger)):
    acc = _own_account(store, user, AccountType.CURRENT)
    return ledger.deposit(acc.id, body.amount)


@router.post("/withdraw", status_code=201)
def withdraw(body: AmountIn, user: int = Depends(get_user), store: AccountStore = Depends(get_accounts),
             ledger: LedgerEngine = Depends(get_ledger)):
    acc = _own_account(store, user, AccountType.CURRENT)
    return ledger.withdraw(acc.id, body.amount)


@router.post("/transfer", status_code=201)
def transfer(body: TransferIn, user: int = Depends(get_user), store: AccountStore = Depends(get_accounts),
             ledger: LedgerEngine = Depends(get_ledger)):
    src = _own_account(store, user, body.fromAccountType)
    return ledger.transfer(src.id, body.toAccountId, body.amount, body.description)


@router.get("/history")
def history(limit: int = Query(5, ge=1), offset: int = Query(0, ge=0), user: int = Depends(get_user),
            store: AccountStore = Depends(get_accounts), reader: HistoryReader = Depends(get_history)):
    acc = _own_account(store, user, AccountType.CURRENT)
    return {
        "accountId": acc.id,
        "limit": min(limit, MAX_QUERY_LIMIT),
        "offset": offset,
        "transactions": reader.get_history(acc.id, limit, offset),
    }
