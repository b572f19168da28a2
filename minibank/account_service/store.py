import logging
from typing import Dict, List, Optional

from sqlmodel import Session, select

from ..db import unit_of_work
from ..errors import ErrorKind, LedgerError
from ..models import Account, AccountType

logger = logging.getLogger(__name__)


class AccountStore:
    """Owns account rows. Balances are only changed by the ledger engine."""

    def __init__(self, engine):
        self.engine = engine

    def create(self, user_id: int, type: AccountType, balance: float = 0.0) -> Account:
        if balance < 0:
            raise LedgerError(ErrorKind.INVALID_AMOUNT, "Opening balance cannot be negative")
        with unit_of_work(self.engine) as session:
            acc = Account(user_id=user_id, type=AccountType(type), balance=balance)
            session.add(acc)
        logger.info("created %s account %s for user %s", acc.type.value, acc.id, user_id)
        return acc

    def create_default_pair(self, session: Session, user_id: int) -> List[Account]:
        """Open the current + investment accounts every new user gets."""
        pair = [
            Account(user_id=user_id, type=AccountType.CURRENT),
            Account(user_id=user_id, type=AccountType.INVESTMENT),
        ]
        session.add_all(pair)
        session.flush()
        return pair

    def find_by_id(self, account_id: str) -> Optional[Account]:
        with Session(self.engine) as session:
            return session.get(Account, account_id)

    def find_by_user(self, user_id: int) -> Optional[List[Account]]:
        with Session(self.engine) as session:
            accounts = session.exec(
                select(Account).where(Account.user_id == user_id).order_by(Account.created_at)
            ).all()
        return list(accounts) or None

    def find_user_account(self, user_id: int, type: AccountType) -> Optional[Account]:
        with Session(self.engine) as session:
            return session.exec(
                select(Account).where(
                    Account.user_id == user_id,
                    Account.type == type,
                    Account.active == True,  # noqa: E712
                )
            ).first()

    @staticmethod
    def lock(session: Session, account_id: str) -> Optional[Account]:
        """Read an account for update inside an open unit of work."""
        return session.exec(
            select(Account).where(Account.id == account_id).with_for_update()
        ).first()

    @staticmethod
    def lock_many_statement(account_ids):
        # one statement, rows locked in id order, so two transfers between the
        # same pair of accounts can never wait on each other in a cycle
        return (
            select(Account)
            .where(Account.id.in_(sorted(set(account_ids))))
            .order_by(Account.id)
            .with_for_update()
        )

    @classmethod
    def lock_many(cls, session: Session, account_ids) -> Dict[str, Account]:
        return {acc.id: acc for acc in session.exec(cls.lock_many_statement(account_ids)).all()}

    @staticmethod
    def lock_investment_account(session: Session, user_id: int) -> Optional[Account]:
        return session.exec(
            select(Account)
            .where(
                Account.user_id == user_id,
                Account.type == AccountType.INVESTMENT,
                Account.active == True,  # noqa: E712
            )
            .with_for_update()
        ).first()

    def set_active(self, account_id: str, active: bool) -> Optional[Account]:
        with unit_of_work(self.engine) as session:
            acc = session.get(Account, account_id)
            if not acc:
                return None
            if acc.active != active:
                acc.active = active
                session.add(acc)
                logger.info("account %s active=%s", account_id, active)
        return acc
