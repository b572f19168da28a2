import uuid
from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional

from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


class AccountType(str, Enum):
    CURRENT = "current_account"
    INVESTMENT = "investment_account"


class TransactionType(str, Enum):
    INTERNAL = "internal"
    EXTERNAL = "external"
    ASSET_PURCHASE = "asset_purchase"
    ASSET_SALE = "asset_sale"


class TransactionCategory(str, Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    TRANSFER = "transfer"
    INVESTMENT = "investment"


class FixedIncomeType(str, Enum):
    CDB = "cdb"
    TESOURO_DIRETO = "tesouro_direto"


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    email: str = Field(unique=True, index=True)
    cpf: str = Field(unique=True, max_length=11)
    birth_date: date
    password: str
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow, sa_column_kwargs={"onupdate": utcnow})


class Account(SQLModel, table=True):
    __tablename__ = "accounts"

    id: str = Field(default_factory=new_id, primary_key=True)
    user_id: int = Field(index=True)
    type: AccountType
    balance: float = 0.0
    active: bool = True
    pending_transaction: bool = False
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow, sa_column_kwargs={"onupdate": utcnow})


class Transaction(SQLModel, table=True):
    """Append-only record of one settled money movement."""

    __tablename__ = "transactions"

    id: str = Field(default_factory=new_id, primary_key=True)
    from_account_id: Optional[str] = Field(default=None, index=True)
    to_account_id: Optional[str] = Field(default=None, index=True)
    amount: float
    type: TransactionType
    category: Optional[TransactionCategory] = None
    description: str = ""
    created_at: datetime = Field(default_factory=utcnow, index=True)


class Stock(SQLModel, table=True):
    __tablename__ = "stocks"

    id: str = Field(primary_key=True)  # ticker symbol
    name: str
    sector: str
    current_price: float
    daily_variation: float = 0.0
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow, sa_column_kwargs={"onupdate": utcnow})


class FixedIncome(SQLModel, table=True):
    __tablename__ = "fixed_incomes"

    id: str = Field(primary_key=True)
    name: str
    type: FixedIncomeType
    rate: float  # annual, in percent
    rate_type: str
    maturity: date
    minimum_investment: float
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow, sa_column_kwargs={"onupdate": utcnow})
