import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import date

import pytest
from sqlmodel import Session

from minibank.account_service.store import AccountStore
from minibank.db import init_db, make_engine
from minibank.ledger_service.engine import LedgerEngine
from minibank.ledger_service.history import HistoryReader
from minibank.market_service.pricing import MarketPricing
from minibank.models import Account, AccountType, FixedIncomeType, User


@pytest.fixture
def engine():
    eng = make_engine("sqlite://")
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def store(engine):
    return AccountStore(engine)


@pytest.fixture
def pricing(engine):
    p = MarketPricing(engine)
    p.upsert_stock("AAPL", "Apple Inc.", "Technology", 150.25, 1.2)
    p.upsert_stock("PETR4", "Petrobras", "Energy", 38.5, -0.4)
    p.upsert_fixed_income("CDB001", "CDB Banco XPTO", FixedIncomeType.CDB, 12.0, "pre",
                          date(2027, 1, 1), 1000.0)
    p.upsert_fixed_income("TD001", "Tesouro Selic", FixedIncomeType.TESOURO_DIRETO, 10.5, "pos",
                          date(2029, 3, 1), 100.0)
    return p


@pytest.fixture
def ledger(engine, store, pricing):
    return LedgerEngine(engine, store, pricing)


@pytest.fixture
def history(engine):
    return HistoryReader(engine)


@pytest.fixture
def make_user(engine):
    def _make(user_id, name="Test User", cpf=None):
        with Session(engine) as s:
            user = User(id=user_id, name=name, email=f"user{user_id}@bank.test",
                        cpf=cpf or f"{user_id:011d}", birth_date=date(1990, 1, 1), password="x")
            s.add(user)
            s.commit()
            s.refresh(user)
            return user
    return _make


@pytest.fixture
def make_account(engine):
    def _make(user_id=1, type=AccountType.CURRENT, balance=0.0, pending=False, active=True):
        with Session(engine, expire_on_commit=False) as s:
            acc = Account(user_id=user_id, type=type, balance=balance,
                          pending_transaction=pending, active=active)
            s.add(acc)
            s.commit()
            return acc
    return _make


@pytest.fixture
def reload(engine):
    def _reload(account_id):
        with Session(engine) as s:
            return s.get(Account, account_id)
    return _reload


@pytest.fixture
def transactions(engine):
    from sqlmodel import select
    from minibank.models import Transaction

    def _all():
        with Session(engine) as s:
            return list(s.exec(select(Transaction)).all())
    return _all
