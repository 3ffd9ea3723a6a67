from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from daily_balance.api.routes import router as api_router
from daily_balance.api.sessions import FormRegistry
from daily_balance.core.config import AppConfig, Settings, get_settings
from daily_balance.core.exceptions import (
    BalanceError,
    EntryNotFoundError,
    InvalidFieldError,
    MissingActorError,
    StoreError,
    ValidationGateError,
)
from daily_balance.providers import BalanceStore, HttpBalanceStore, InMemoryBalanceStore

app_config = AppConfig()


def build_store(settings: Settings) -> BalanceStore:
    if settings.balance_store == "memory":
        logger.info("Using in-memory balance store")
        return InMemoryBalanceStore()
    return HttpBalanceStore(
        base_url=settings.balance_api_url,
        token=settings.balance_api_token,
        timeout=settings.balance_api_timeout,
    )


def error_status(exc: BalanceError) -> int:
    if isinstance(exc, (ValidationGateError, InvalidFieldError)):
        return status.HTTP_422_UNPROCESSABLE_ENTITY
    if isinstance(exc, MissingActorError):
        return status.HTTP_401_UNAUTHORIZED
    if isinstance(exc, EntryNotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, StoreError):
        return status.HTTP_502_BAD_GATEWAY
    return status.HTTP_400_BAD_REQUEST


def create_app(settings: Settings | None = None, store: BalanceStore | None = None) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(title=app_config.description, version=app_config.version)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)

    @app.on_event("startup")
    async def on_startup() -> None:
        app.state.registry = FormRegistry(store or build_store(settings), settings)
        logger.info("daily-balance started", version=app_config.version)

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        await app.state.registry.close_all()

    @app.exception_handler(BalanceError)
    async def balance_error_handler(request: Request, exc: BalanceError) -> JSONResponse:
        return JSONResponse(
            status_code=error_status(exc),
            content={"status": "error", "message": exc.message},
        )

    @app.get("/")
    async def root():
        return {"message": "daily-balance up", "version": app_config.version}

    return app


app = create_app()
