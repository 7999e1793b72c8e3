from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware
from .core.config import get_settings, Settings
from .core.logging import init_logging, request_context_middleware
from .core import errors
from .db.dal import AccountStore, JsonAccountGateway
from .services.rates.admin import RateAdministration
from .services.rates.resolver import UserRateResolver
from .services.rates.store import RateStore
from .routers import health, auth, rates, admin


def create_app(settings_override: Settings | None = None) -> FastAPI:
    """Application factory.

    settings_override: pass an already constructed Settings instance for tests
    to isolate environment (e.g., temp data dir). Falls back to cached get_settings().
    Derived paths are filled in here, so callers need not call init_post_load().
    """
    settings = settings_override or get_settings()
    settings.init_post_load()
    # Initialize logging early
    init_logging(debug=settings.debug)

    # Load baseline rates and accounts; either may degrade to empty
    rate_store = RateStore(settings.rates_path)  # type: ignore[arg-type]
    rate_store.load_or_empty()
    accounts = AccountStore(JsonAccountGateway(settings.users_path))  # type: ignore[arg-type]
    accounts.load_or_empty()

    app = FastAPI(
        title=settings.app_name, debug=settings.debug, version=settings.version
    )
    app.state.settings = settings
    app.state.rate_store = rate_store
    app.state.accounts = accounts
    app.state.resolver = UserRateResolver(rate_store)
    app.state.rate_admin = RateAdministration(accounts, rate_store)

    # Middleware (session cookie, request id / structured logging)
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret,
        max_age=settings.session_max_age_seconds,
    )
    app.middleware("http")(request_context_middleware)

    # Error handlers
    app.add_exception_handler(errors.ConverterError, errors.converter_error_handler)
    app.add_exception_handler(StarletteHTTPException, errors.http_error_handler)
    app.add_exception_handler(RequestValidationError, errors.validation_error_handler)
    app.add_exception_handler(Exception, errors.server_error_handler)

    # Routers
    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(rates.router)
    app.include_router(admin.router)

    @app.get("/")
    async def root():
        return {"message": settings.app_name, "version": settings.version}

    return app


app = create_app()
