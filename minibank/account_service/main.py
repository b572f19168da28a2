from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ..dependencies import get_accounts
from ..models import Account, AccountType
from ..security import get_user
from .store import AccountStore

router = APIRouter(prefix="/account", tags=["account"])


class CreateAccountIn(BaseModel):
    type: AccountType
    balance: float = Field(default=0.0, ge=0)


def _out(acc: Account) -> dict:
    return {
        "id": acc.id,
        "userId": acc.user_id,
        "type": acc.type.value,
        "balance": acc.balance,
        "active": acc.active,
        "pendingTransaction": acc.pending_transaction,
        "createdAt": acc.created_at,
        "updatedAt": acc.updated_at,
    }


def _owned(store: AccountStore, acc_id: str, user: int) -> Account:
    acc = store.find_by_id(acc_id)
    # other users' accounts look exactly like missing ones
    if not acc or acc.user_id != user:
        raise HTTPException(404, "Account not found")
    return acc


@router.post("/create", status_code=201)
def create_account(body: CreateAccountIn, user: int = Depends(get_user),
                   store: AccountStore = Depends(get_accounts)):
    return _out(store.create(user, body.type, body.balance))


@router.get("/mine")
def my_accounts(user: int = Depends(get_user), store: AccountStore = Depends(get_accounts)):
    accounts = store.find_by_user(user)
    if not accounts:
        raise HTTPException(404, "No accounts found")
    return [_out(a) for a in accounts]


@router.get("/get/{acc_id}")
def get_account(acc_id: str, user: int = Depends(get_user), store: AccountStore = Depends(get_accounts)):
    return _out(_owned(store, acc_id, user))


@router.patch("/activate/{acc_id}")
def activate(acc_id: str, user: int = Depends(get_user), store: AccountStore = Depends(get_accounts)):
    _owned(store, acc_id, user)
    return _out(store.set_active(acc_id, True))


@router.delete("/deactivate/{acc_id}")
def deactivate(acc_id: str, user: int = Depends(get_user), store: AccountStore = Depends(get_accounts)):
    _owned(store, acc_id, user)
    return _out(store.set_active(acc_id, False))
