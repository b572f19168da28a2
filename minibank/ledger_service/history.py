from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel
from sqlalchemy import or_
from sqlmodel import Session, select

from ..models import Account, Transaction, TransactionCategory, TransactionType, User

MAX_QUERY_LIMIT = 50
CPF_LENGTH = 11


def mask_cpf(cpf: str) -> str:
    """Keep the last five digits of a cpf and star out the rest."""
    return cpf[-5:].rjust(CPF_LENGTH, "*")


class UserSummary(BaseModel):
    name: str
    cpf: str


class AccountSummary(BaseModel):
    id: str
    user: Optional[UserSummary] = None


class HistoryEntry(BaseModel):
    id: str
    from_account_id: Optional[str] = None
    to_account_id: Optional[str] = None
    amount: float
    type: TransactionType
    category: Optional[TransactionCategory] = None
    description: str
    created_at: datetime
    from_account: Optional[AccountSummary] = None
    to_account: Optional[AccountSummary] = None


class HistoryReader:
    """Banking statement for one account; trading rows are left out."""

    def __init__(self, engine):
        self.engine = engine

    def get_history(self, account_id: str, limit: int = 5, offset: int = 0) -> List[HistoryEntry]:
        limit = max(1, min(limit, MAX_QUERY_LIMIT))
        offset = max(0, offset)
        with Session(self.engine) as session:
            rows = session.exec(
                select(Transaction)
                .where(
                    or_(Transaction.from_account_id == account_id,
                        Transaction.to_account_id == account_id),
                    or_(Transaction.category.is_(None),
                        Transaction.category != TransactionCategory.INVESTMENT),
                )
                .order_by(Transaction.created_at.desc())
                .offset(offset)
                .limit(limit)
            ).all()
            parties = self._parties(session, rows)

        return [
            HistoryEntry(
                id=tx.id,
                from_account_id=tx.from_account_id,
                to_account_id=tx.to_account_id,
                amount=tx.amount,
                type=tx.type,
                category=tx.category,
                description=tx.description,
                created_at=tx.created_at,
                from_account=parties.get(tx.from_account_id),
                to_account=parties.get(tx.to_account_id),
            )
            for tx in rows
        ]

    @staticmethod
    def _parties(session: Session, rows) -> Dict[str, AccountSummary]:
        ids = {i for tx in rows for i in (tx.from_account_id, tx.to_account_id) if i}
        if not ids:
            return {}
        accounts = session.exec(select(Account).where(Account.id.in_(ids))).all()
        user_ids = {a.user_id for a in accounts}
        users = {u.id: u for u in session.exec(select(User).where(User.id.in_(user_ids))).all()}

        out = {}
        for acc in accounts:
            owner = users.get(acc.user_id)
            summary = UserSummary(name=owner.name, cpf=mask_cpf(owner.cpf)) if owner else None
            out[acc.id] = AccountSummary(id=acc.id, user=summary)
        return out
