from __future__ import annotations

from contextlib import asynccontextmanager

import sentry_sdk
from fastapi import FastAPI
from sentry_sdk.integrations.fastapi import FastApiIntegration

from .api.routes import chat as chat_routes
from .db.core import init_db
from .logging_config import configure_structlog, get_logger
from .openai_async import close_async_client
from .settings import settings
from .utils import add_request_id_tracing

# Configure structured logging (must be done before any logging calls)
configure_structlog(json_logs=not settings.DEBUG)

if settings.SENTRY_DSN:
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.SENTRY_ENVIRONMENT,
        release=settings.SENTRY_RELEASE or "dinver-ai@dev",
        integrations=[FastApiIntegration()],
        traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
    )

logger = get_logger(__name__)

API_PREFIX = "/v1"


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.DB_CREATE_TABLES:
        await init_db()
        logger.info("database_tables_ensured")
    yield
    await close_async_client()


app = FastAPI(
    title="Dinver AI",
    version="0.1.0",
    description="Conversational assistant grounded in Dinver partner restaurant data",
    lifespan=lifespan,
)
add_request_id_tracing(app)

app.include_router(chat_routes.router, prefix=API_PREFIX)


@app.get("/health")
async def health():
    return {"status": "ok"}
