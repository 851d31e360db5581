from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Settings
from app.config.settings import QuoteConfigs
configs = QuoteConfigs()

# Sentry first so import-time failures below are reported
from app.config.sentry import init_sentry
init_sentry()

from app.connections.database import close_db_pool
from app.logging.utils import initialize_logging, get_app_logger
from app.middlewares.logging_middleware import AuditMiddleware
from app.middlewares.handlers import register_exception_handlers
from app.routes.pos import pos_router
from app.routes.health import router as health_router

initialize_logging()
logger = get_app_logger('app.main')


def allowed_origins() -> list[str]:
    origins = [origin.strip() for origin in (configs.ALLOWED_ORIGINS or "").split(",") if origin.strip()]
    return origins or ["*"]


@asynccontextmanager
async def lifespan(_: FastAPI):
    logger.info(f"service_starting | name={configs.APP_NAME} version={configs.APP_VERSION} debug={configs.DEBUG}")
    try:
        yield
    finally:
        close_db_pool()
        logger.info(f"service_stopped | name={configs.APP_NAME}")


app = FastAPI(
    title="POS Quote Service",
    version=configs.APP_VERSION,
    lifespan=lifespan,
    # interactive docs only outside production
    docs_url="/docs" if configs.DEBUG else None,
    redoc_url="/redoc" if configs.DEBUG else None,
)

app.add_middleware(AuditMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)
register_exception_handlers(app)

app.include_router(pos_router, prefix="/pos/v1")
app.include_router(health_router, tags=["health"])
