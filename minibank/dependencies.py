from fastapi import Request

from .account_service.store import AccountStore
from .auth_service.service import AuthService
from .ledger_service.engine import LedgerEngine
from .ledger_service.history import HistoryReader
from .market_service.pricing import MarketPricing


def get_accounts(request: Request) -> AccountStore:
    return request.app.state.accounts


def get_ledger(request: Request) -> LedgerEngine:
    return request.app.state.ledger


def get_history(request: Request) -> HistoryReader:
    return request.app.state.history


def get_pricing(request: Request) -> MarketPricing:
    return request.app.state.pricing


def get_auth(request: Request) -> AuthService:
    return request.app.state.auth
