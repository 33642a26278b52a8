import logging
import time
from contextlib import asynccontextmanager

import sentry_sdk
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration

from src.config.database import create_engine, create_session_maker, upgrade_database
from src.config.logging import setup_logging
from src.config.settings import Settings, settings
from src.invites.routers import router as invites_router
from src.invites.schemas import failure_response
from src.routers.healthz.router import router as healthz_router

logger = logging.getLogger(__name__)
http_logger = logging.getLogger("src.http")


@asynccontextmanager
async def lifespan(app: FastAPI):
    if app.state.settings.RUN_MIGRATIONS_ON_STARTUP:
        await upgrade_database(app.state.engine)
    logger.info("serving on :%d", app.state.settings.app_port)
    yield
    logger.info("shutting down, disposing database connections")
    await app.state.engine.dispose()
    logger.info("server exiting")


async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    client = request.client.host if request.client else "-"
    http_logger.info(
        '%s "%s %s" %d %.2fms "%s"',
        client,
        request.method,
        request.url.path,
        response.status_code,
        (time.perf_counter() - started) * 1000,
        request.headers.get("user-agent", "-"),
    )
    return response


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
    )
    return failure_response(400, errors)


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled error while processing %s %s", request.method, request.url.path)
    return failure_response(500, "internal server error")


def init_sentry(app_settings: Settings) -> None:
    sentry_sdk.init(
        dsn=app_settings.SENTRY_DSN,
        environment=app_settings.ENVIRONMENT,
        traces_sample_rate=app_settings.SENTRY_TRACES_SAMPLE_RATE,
        profiles_sample_rate=app_settings.SENTRY_PROFILES_SAMPLE_RATE,
        integrations=[
            StarletteIntegration(transaction_style="endpoint"),
            FastApiIntegration(transaction_style="endpoint"),
        ],
        send_default_pii=False,
    )


def create_app(app_settings: Settings | None = None) -> FastAPI:
    app_settings = app_settings or settings
    setup_logging(app_settings.debug)

    if app_settings.SENTRY_DSN:
        init_sentry(app_settings)

    app = FastAPI(
        title="Wedding Invite API",
        description="API for reading wedding invitations and answering their RSVP",
        version="0.1.0",
        lifespan=lifespan,
    )

    engine = create_engine(app_settings.database_url, echo=app_settings.LOG_DB)
    app.state.settings = app_settings
    app.state.engine = engine
    app.state.session_maker = create_session_maker(engine)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=app_settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(log_requests)

    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)

    # Include routers
    app.include_router(healthz_router, prefix="/healthz", tags=["Healthz"])
    app.include_router(invites_router, tags=["Invites"])

    @app.get("/", tags=["Root"])
    async def root():
        return {"message": "Welcome to the Wedding Invite API"}

    return app
