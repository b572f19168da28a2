import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ..dependencies import get_ledger, get_pricing
from ..ledger_service.engine import AssetClass, LedgerEngine
from ..security import get_user
from .pricing import MarketPricing

router = APIRouter(prefix="/market", tags=["market"])
logger = logging.getLogger(__name__)


class AssetOrderIn(BaseModel):
    assetSymbol: str = Field(min_length=1)
    quantity: float = Field(gt=0)


@router.get("/stocks")
def list_stocks(user: int = Depends(get_user), pricing: MarketPricing = Depends(get_pricing)):
    return pricing.list_stocks()


@router.get("/fixed-incomes")
def list_fixed_incomes(user: int = Depends(get_user), pricing: MarketPricing = Depends(get_pricing)):
    return pricing.list_fixed_incomes()


@router.post("/buy/stock", status_code=201)
def buy_stock(body: AssetOrderIn, user: int = Depends(get_user), ledger: LedgerEngine = Depends(get_ledger)):
    tx = ledger.settle_asset_purchase(user, body.assetSymbol, body.quantity, AssetClass.STOCK)
    logger.info("user %s purchased %s shares of %s", user, body.quantity, body.assetSymbol)
    return tx


@router.post("/sell/stock", status_code=201)
def sell_stock(body: AssetOrderIn, user: int = Depends(get_user), ledger: LedgerEngine = Depends(get_ledger)):
    tx = ledger.settle_asset_sale(user, body.assetSymbol, body.quantity, AssetClass.STOCK)
    logger.info("user %s sold %s shares of %s", user, body.quantity, body.assetSymbol)
    return tx


@router.post("/buy/fixed-income", status_code=201)
def buy_fixed_income(body: AssetOrderIn, user: int = Depends(get_user),
                     ledger: LedgerEngine = Depends(get_ledger)):
    tx = ledger.settle_asset_purchase(user, body.assetSymbol, body.quantity, AssetClass.FIXED_INCOME)
    logger.info("user %s invested %s in %s", user, body.quantity, body.assetSymbol)
    return tx


@router.post("/sell/fixed-income", status_code=201)
def sell_fixed_income(body: AssetOrderIn, user: int = Depends(get_user),
                      ledger: LedgerEngine = Depends(get_ledger)):
    tx = ledger.settle_asset_sale(user, body.assetSymbol, body.quantity, AssetClass.FIXED_INCOME)
    logger.info("user %s redeemed %s from %s", user, body.quantity, body.assetSymbol)
    return tx
