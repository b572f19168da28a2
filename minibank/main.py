import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .account_service.main import router as account_router
from .account_service.store import AccountStore
from .auth_service.main import router as auth_router
from .auth_service.service import AuthService
from .config import DATABASE_URL, LOG_LEVEL
from .db import init_db, make_engine
from .errors import AuthError, LedgerError
from .ledger_service.engine import LedgerEngine
from .ledger_service.history import HistoryReader
from .logs import configure_logging
from .market_service.main import router as market_router
from .market_service.pricing import MarketPricing
from .transaction_service.main import router as transaction_router

logger = logging.getLogger(__name__)


def _error_body(request: Request, status: int, error: str, message: str, details=None) -> JSONResponse:
    body = {
        "statusCode": status,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "path": request.url.path,
        "method": request.method,
        "error": error,
        "message": message,
    }
    if details:
        body["details"] = details
    return JSONResponse(status_code=status, content=body)


def install_error_handlers(app: FastAPI):
    @app.exception_handler(LedgerError)
    async def ledger_error(request: Request, exc: LedgerError):
        return _error_body(request, exc.status_code, exc.kind.value, exc.message,
                           {"type": exc.kind.value, "cause": exc.cause})

    @app.exception_handler(AuthError)
    async def auth_error(request: Request, exc: AuthError):
        return _error_body(request, exc.status_code, "AUTH_ERROR", exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return _error_body(request, exc.status_code, "HTTP_ERROR", str(exc.detail))

    @app.exception_handler(Exception)
    async def unexpected(request: Request, exc: Exception):
        logger.exception("%s %s failed", request.method, request.url.path)
        return _error_body(request, 500, "INTERNAL_ERROR", "Operation failed")


def create_app(engine=None) -> FastAPI:
    engine = engine or make_engine(DATABASE_URL)
    init_db(engine)

    app = FastAPI(title="mini-bank")
    accounts = AccountStore(engine)
    pricing = MarketPricing(engine)
    app.state.engine = engine
    app.state.accounts = accounts
    app.state.pricing = pricing
    app.state.ledger = LedgerEngine(engine, accounts, pricing)
    app.state.history = HistoryReader(engine)
    app.state.auth = AuthService(engine, accounts)

    @app.get("/health", response_class=PlainTextResponse, tags=["health"])
    def health():
        return "OK"

    for router in (auth_router, account_router, transaction_router, market_router):
        app.include_router(router)
    install_error_handlers(app)
    return app


configure_logging(LOG_LEVEL)
app = create_app()
