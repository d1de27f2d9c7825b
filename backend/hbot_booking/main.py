# backend/hbot_booking/main.py
from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .core.config import settings
from .core.constants import ALLOWED_ORIGINS, API_DESCRIPTION, API_TITLE, API_VERSION, BRAND_NAME
from .errors import register_error_handlers
from .middleware.prometheus_middleware import PrometheusMiddleware
from .routes import monitoring
from .routes.v1 import admin as admin_v1
from .routes.v1 import bookings as bookings_v1
from .routes.v1 import credits as credits_v1
from .routes.v1 import payments as payments_v1
from .routes.v1 import pricing as pricing_v1
from .routes.v1 import schedule as schedule_v1

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    logger.info(f"{BRAND_NAME} booking API starting ({settings.environment})")
    if not settings.stripe_secret_key.get_secret_value():
        logger.warning("STRIPE_SECRET_KEY not set; payment intents run in mock mode")
    if not settings.webhook_secrets:
        logger.warning("No Stripe webhook secrets configured; webhooks will be rejected")
    yield
    logger.info(f"{BRAND_NAME} booking API shutting down")


app = FastAPI(
    title=API_TITLE,
    description=API_DESCRIPTION,
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=app_lifespan,
)

register_error_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)
app.add_middleware(PrometheusMiddleware)

api_v1 = APIRouter(prefix="/api/v1")
api_v1.include_router(pricing_v1.router, prefix="/pricing")
api_v1.include_router(schedule_v1.router, prefix="/schedule")
api_v1.include_router(bookings_v1.router, prefix="/bookings")
api_v1.include_router(payments_v1.router, prefix="/payments")
api_v1.include_router(credits_v1.router, prefix="/credits")
api_v1.include_router(admin_v1.router, prefix="/admin")

app.include_router(api_v1)
app.include_router(monitoring.router)
