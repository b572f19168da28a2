import logging
from datetime import date
from typing import List, Optional

from sqlmodel import Session, select

from ..db import unit_of_work
from ..errors import ErrorKind, LedgerError
from ..models import FixedIncome, FixedIncomeType, Stock

logger = logging.getLogger(__name__)


class MarketPricing:
    """Read-only asset catalog for settlements, plus seeding helpers."""

    def __init__(self, engine):
        self.engine = engine

    def _read(self, model, key, session: Optional[Session]):
        if session is not None:
            return session.get(model, key)
        with Session(self.engine) as s:
            return s.get(model, key)

    def get_stock(self, symbol: str, session: Optional[Session] = None) -> Optional[Stock]:
        return self._read(Stock, symbol, session)

    def get_fixed_income(self, asset_id: str, session: Optional[Session] = None) -> Optional[FixedIncome]:
        return self._read(FixedIncome, asset_id, session)

    def list_stocks(self) -> List[Stock]:
        with Session(self.engine) as session:
            return list(session.exec(select(Stock).order_by(Stock.name)).all())

    def list_fixed_incomes(self) -> List[FixedIncome]:
        with Session(self.engine) as session:
            return list(session.exec(select(FixedIncome).order_by(FixedIncome.name)).all())

    def upsert_stock(self, symbol: str, name: str, sector: str, current_price: float,
                     daily_variation: float = 0.0) -> Stock:
        if current_price <= 0:
            raise LedgerError(ErrorKind.INVALID_AMOUNT, "Current price must be positive")
        with unit_of_work(self.engine) as session:
            stock = session.get(Stock, symbol)
            if stock:
                stock.current_price = current_price
                stock.daily_variation = daily_variation
            else:
                stock = Stock(id=symbol, name=name, sector=sector,
                              current_price=current_price, daily_variation=daily_variation)
            session.add(stock)
        return stock

    def upsert_fixed_income(self, asset_id: str, name: str, type: FixedIncomeType, rate: float,
                            rate_type: str, maturity: date, minimum_investment: float) -> FixedIncome:
        with unit_of_work(self.engine) as session:
            fi = session.get(FixedIncome, asset_id)
            if fi:
                fi.rate = rate
                fi.maturity = maturity
                fi.minimum_investment = minimum_investment
            else:
                fi = FixedIncome(id=asset_id, name=name, type=FixedIncomeType(type), rate=rate,
                                 rate_type=rate_type, maturity=maturity,
                                 minimum_investment=minimum_investment)
            session.add(fi)
        return fi

    def update_price(self, symbol: str, current_price: float) -> Stock:
        if current_price <= 0:
            raise LedgerError(ErrorKind.INVALID_AMOUNT, "Current price must be positive")
        with unit_of_work(self.engine) as session:
            stock = session.get(Stock, symbol)
            if not stock:
                raise LedgerError(ErrorKind.ASSET_NOT_FOUND, f"Stock {symbol} not found")
            stock.current_price = current_price
            session.add(stock)
        logger.info("price of %s set to %s", symbol, current_price)
        return stock
