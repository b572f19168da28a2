"""Ledger engine: every balance change in the bank goes through here.

Each public operation runs inside a single unit of work. The accounts it
reads to make a decision are locked for update in that same unit, the
balances are changed, exactly one ``Transaction`` row is appended and the
whole thing commits together. Any ``LedgerError`` (or anything unexpected)
rolls the unit back and leaves no trace.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum

from sqlmodel import Session

from ..account_service.store import AccountStore
from ..db import unit_of_work
from ..errors import ErrorKind, LedgerError
from ..market_service.pricing import MarketPricing
from ..models import Account, AccountType, Transaction, TransactionCategory, TransactionType

logger = logging.getLogger(__name__)

EXTERNAL_TRANSFER_FEE_RATE = 0.005
BROKERAGE_FEE_RATE = 0.01
STOCK_TAX_RATE = 0.15
FIXED_INCOME_TAX_RATE = 0.22
# no lot tracking yet: sales assume the position was bought 10% cheaper
ASSUMED_STOCK_GAIN = 0.10
# and that fixed income was held for six months
FIXED_INCOME_HOLDING_MONTHS = 6


class AssetClass(str, Enum):
    STOCK = "stock"
    FIXED_INCOME = "fixed_income"


@dataclass
class Settlement:
    amount: float
    description: str


def _fail(kind: ErrorKind, message: str, cause: str = None) -> LedgerError:
    logger.warning("ledger rejected: %s (%s)", kind.value, message)
    return LedgerError(kind, message, cause)


def _require_positive(amount: float, what: str = "Amount"):
    if amount is None or amount <= 0:
        raise _fail(ErrorKind.INVALID_AMOUNT, f"{what} must be greater than zero")


@contextmanager
def pending_lock(session: Session, account: Account):
    """Hold the account's pending-transaction flag for the duration of the block.

    The flag is flushed as set and cleared again on every exit path. Both
    writes belong to the caller's unit of work, so a failed settlement rolls
    back to the flag's previous (clear) value and never commits it as set.
    """
    account.pending_transaction = True
    session.add(account)
    session.flush()
    try:
        yield account
    finally:
        account.pending_transaction = False
        session.add(account)


class LedgerEngine:
    def __init__(self, engine, accounts: AccountStore, pricing: MarketPricing):
        self.engine = engine
        self.accounts = accounts
        self.pricing = pricing

    # -- banking ----------------------------------------------------------

    def _banking_account(self, session: Session, account_id: str) -> Account:
        acc = self.accounts.lock(session, account_id)
        if not acc:
            raise _fail(ErrorKind.ACCOUNT_NOT_FOUND, "Account not found")
        if acc.type == AccountType.INVESTMENT:
            raise _fail(ErrorKind.INVALID_ACCOUNT_TYPE, "Operation not allowed on investment accounts")
        return acc

    def deposit(self, account_id: str, amount: float) -> Transaction:
        _require_positive(amount)
        with unit_of_work(self.engine) as session:
            acc = self._banking_account(session, account_id)
            acc.balance += amount
            session.add(acc)
            tx = Transaction(
                from_account_id=None,
                to_account_id=acc.id,
                amount=amount,
                type=TransactionType.INTERNAL,
                category=TransactionCategory.DEPOSIT,
                description="Deposit",
            )
            session.add(tx)
        logger.info("deposit %s into %s (tx %s)", amount, account_id, tx.id)
        return tx

    def withdraw(self, account_id: str, amount: float) -> Transaction:
        _require_positive(amount)
        with unit_of_work(self.engine) as session:
            acc = self._banking_account(session, account_id)
            if acc.balance < amount:
                raise _fail(ErrorKind.INSUFFICIENT_FUNDS, "Insufficient funds for withdrawal")
            acc.balance -= amount
            session.add(acc)
            tx = Transaction(
                from_account_id=acc.id,
                to_account_id=None,
                amount=amount,
                type=TransactionType.INTERNAL,
                category=TransactionCategory.WITHDRAWAL,
                description="Withdrawal",
            )
            session.add(tx)
        logger.info("withdraw %s from %s (tx %s)", amount, account_id, tx.id)
        return tx

    def transfer(self, from_account_id: str, to_account_id: str, amount: float,
                 description: str = None) -> Transaction:
        _require_positive(amount)
        if from_account_id == to_account_id:
            raise _fail(ErrorKind.SAME_ACCOUNT_TRANSFER, "Cannot transfer to the same account")

        with unit_of_work(self.engine) as session:
            locked = self.accounts.lock_many(session, [from_account_id, to_account_id])
            dst = locked.get(to_account_id)
            if not dst:
                raise _fail(ErrorKind.ACCOUNT_NOT_FOUND, "Destination account not found")
            src = locked.get(from_account_id)
            if not src:
                raise _fail(ErrorKind.ACCOUNT_NOT_FOUND, "Source account not found")

            is_external = src.user_id != dst.user_id
            from_investment = src.type == AccountType.INVESTMENT
            to_current = dst.type == AccountType.CURRENT

            if is_external and (src.type != AccountType.CURRENT or not to_current):
                raise _fail(ErrorKind.INVALID_ACCOUNT_TYPE,
                            "External transfers are only allowed between current accounts")
            if not is_external and from_investment and not to_current:
                raise _fail(ErrorKind.INVALID_ACCOUNT_TYPE,
                            "Investment account can only transfer to a current account")
            if from_investment and src.pending_transaction:
                raise _fail(ErrorKind.PENDING_TRANSACTION,
                            "Cannot transfer from an account with a pending transaction")

            decrease = amount
            if is_external:
                decrease += amount * EXTERNAL_TRANSFER_FEE_RATE
            if src.balance < decrease:
                raise _fail(ErrorKind.INSUFFICIENT_FUNDS, "Insufficient funds for transfer",
                            cause=f"required {decrease:.2f} including fees")

            # the external fee leaves the ledger; nobody is credited with it
            src.balance -= decrease
            dst.balance += amount
            session.add(src)
            session.add(dst)
            tx = Transaction(
                from_account_id=src.id,
                to_account_id=dst.id,
                amount=amount,
                type=TransactionType.EXTERNAL if is_external else TransactionType.INTERNAL,
                category=TransactionCategory.TRANSFER,
                description=description or "Transfer",
            )
            session.add(tx)
        logger.info("transfer %s %s -> %s (%s, tx %s)", amount, from_account_id, to_account_id,
                    tx.type.value, tx.id)
        return tx

    # -- asset settlement -------------------------------------------------

    def _resolve(self, session: Session, user_id: int, symbol: str, asset_class: AssetClass):
        if asset_class == AssetClass.STOCK:
            asset = self.pricing.get_stock(symbol, session=session)
            if not asset:
                raise _fail(ErrorKind.ASSET_NOT_FOUND, f"Stock {symbol} not found")
        else:
            asset = self.pricing.get_fixed_income(symbol, session=session)
            if not asset:
                raise _fail(ErrorKind.ASSET_NOT_FOUND, f"Fixed income asset {symbol} not found")
        acc = self.accounts.lock_investment_account(session, user_id)
        if not acc:
            raise _fail(ErrorKind.INVESTMENT_ACCOUNT_NOT_FOUND, "Investment account not found or inactive")
        return asset, acc

    @staticmethod
    def _price_purchase(asset, quantity: float, asset_class: AssetClass) -> Settlement:
        if asset_class == AssetClass.STOCK:
            gross = asset.current_price * quantity
            fee = gross * BROKERAGE_FEE_RATE
            return Settlement(
                gross + fee,
                f"Purchase of {quantity:g} {asset.id} shares at ${asset.current_price} each "
                f"(Brokerage fee: ${fee:.2f})",
            )
        # for fixed income the quantity is the amount invested
        if quantity < asset.minimum_investment:
            raise _fail(ErrorKind.BELOW_MINIMUM_INVESTMENT,
                        f"Minimum investment for {asset.id} is ${asset.minimum_investment:g}")
        return Settlement(
            quantity,
            f"Investment in {asset.name} - ${quantity:g} (Rate: {asset.rate:g}% {asset.rate_type})",
        )

    @staticmethod
    def _price_sale(asset, quantity: float, asset_class: AssetClass) -> Settlement:
        if asset_class == AssetClass.STOCK:
            price = asset.current_price
            gross = price * quantity
            assumed_buy_price = price * (1 - ASSUMED_STOCK_GAIN)
            profit = (price - assumed_buy_price) * quantity
            tax = profit * STOCK_TAX_RATE if profit > 0 else 0.0
            net = gross - tax
            return Settlement(
                net,
                f"Sale of {quantity:g} {asset.id} shares at ${price} each "
                f"(Gross: ${gross:.2f}, Tax: ${tax:.2f}, Net: ${net:.2f})",
            )
        principal = quantity
        monthly_rate = asset.rate / 100 / 12
        gross = principal * (1 + monthly_rate * FIXED_INCOME_HOLDING_MONTHS)
        profit = gross - principal
        tax = profit * FIXED_INCOME_TAX_RATE if profit > 0 else 0.0
        net = gross - tax
        return Settlement(
            net,
            f"Redemption of {asset.name} - Principal: ${principal:g}, Gross: ${gross:.2f}, "
            f"Tax: ${tax:.2f}, Net: ${net:.2f}",
        )

    def settle_asset_purchase(self, user_id: int, asset_symbol: str, quantity: float,
                              asset_class: AssetClass = AssetClass.STOCK) -> Transaction:
        asset_class = AssetClass(asset_class)
        _require_positive(quantity, "Quantity")
        with unit_of_work(self.engine) as session:
            asset, acc = self._resolve(session, user_id, asset_symbol, asset_class)
            settlement = self._price_purchase(asset, quantity, asset_class)
            if acc.balance < settlement.amount:
                raise _fail(ErrorKind.INSUFFICIENT_FUNDS, "Insufficient balance in investment account")
            if acc.pending_transaction:
                raise _fail(ErrorKind.PENDING_TRANSACTION, "There is a pending transaction on this account")

            with pending_lock(session, acc):
                acc.balance -= settlement.amount
                tx = Transaction(
                    from_account_id=acc.id,
                    amount=settlement.amount,
                    type=TransactionType.ASSET_PURCHASE,
                    category=TransactionCategory.INVESTMENT,
                    description=settlement.description,
                )
                session.add(tx)
                session.flush()
        logger.info("user %s bought %s %s for %.2f (tx %s)", user_id, quantity, asset_symbol,
                    settlement.amount, tx.id)
        return tx

    def settle_asset_sale(self, user_id: int, asset_symbol: str, quantity: float,
                          asset_class: AssetClass = AssetClass.STOCK) -> Transaction:
        asset_class = AssetClass(asset_class)
        _require_positive(quantity, "Quantity")
        with unit_of_work(self.engine) as session:
            asset, acc = self._resolve(session, user_id, asset_symbol, asset_class)
            if acc.pending_transaction:
                raise _fail(ErrorKind.PENDING_TRANSACTION, "There is a pending transaction on this account")
            settlement = self._price_sale(asset, quantity, asset_class)

            with pending_lock(session, acc):
                acc.balance += settlement.amount
                tx = Transaction(
                    to_account_id=acc.id,
                    amount=settlement.amount,
                    type=TransactionType.ASSET_SALE,
                    category=TransactionCategory.INVESTMENT,
                    description=settlement.description,
                )
                session.add(tx)
                session.flush()
        logger.info("user %s sold %s %s for %.2f (tx %s)", user_id, quantity, asset_symbol,
                    settlement.amount, tx.id)
        return tx
