"""
FastAPI app entrypoint.

Notification dispatch for the mandi marketplace: deal events, price alerts, history, preferences, translation.
"""
import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from apscheduler.schedulers.background import BackgroundScheduler
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Load .env from backend/ before any app code
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

from mandi_notify.api.routes import alerts, deals, notifications, preferences, push, translate
from mandi_notify.config import settings
from mandi_notify.core.constants import (
    NOTIFICATION_PURGE_HOUR,
    NOTIFICATION_PURGE_JOB_ID,
    PRICE_ALERT_JOB_ID,
)
from mandi_notify.scheduler.notification_cleanup_job import run_notification_cleanup_job
from mandi_notify.scheduler.price_alert_job import run_price_alert_job
from mandi_notify.services.push import Dispatcher, build_push_gateway
from mandi_notify.services.translation import AgentTranslationBackend

if settings.openai_api_key:
    os.environ["OPENAI_API_KEY"] = settings.openai_api_key

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    gateway = build_push_gateway(settings)
    dispatcher = Dispatcher(gateway)
    app.state.dispatcher = dispatcher
    app.state.translation_backend = AgentTranslationBackend(settings.ai_model)
    logger.info("Push provider: %s", gateway.provider_id)

    scheduler = None
    if settings.scheduler_enabled:
        scheduler = BackgroundScheduler()
        scheduler.add_job(
            run_price_alert_job,
            "interval",
            seconds=settings.price_alert_interval_seconds,
            args=[dispatcher],
            id=PRICE_ALERT_JOB_ID,
        )
        scheduler.add_job(
            run_notification_cleanup_job,
            "cron",
            hour=NOTIFICATION_PURGE_HOUR,
            minute=0,
            id=NOTIFICATION_PURGE_JOB_ID,
        )
        scheduler.start()
        app.state.scheduler = scheduler
        logger.info("Price alert check every %ss", settings.price_alert_interval_seconds)
    yield
    if scheduler is not None:
        scheduler.shutdown(wait=False)
    close = getattr(gateway, "close", None)
    if close is not None:
        close()


app = FastAPI(title="Mandi Notify", version="0.1.0", lifespan=lifespan)

# CORS: dev origins + optional CORS_ORIGINS (comma-separated) for production frontends
_cors_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
if settings.cors_origins:
    _cors_origins.extend(o.strip() for o in settings.cors_origins.split(",") if o.strip())
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(notifications.router, tags=["notifications"])
app.include_router(push.router, tags=["push"])
app.include_router(preferences.router, tags=["preferences"])
app.include_router(deals.router, tags=["deals"])
app.include_router(alerts.router, tags=["alerts"])
app.include_router(translate.router, tags=["translate"])


@app.get("/", include_in_schema=False)
def root():
    """Root: point to API docs and health."""
    return {"message": "Mandi Notify API", "docs": "/docs", "health": "/health"}


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
