"""Health and Prometheus scrape endpoints."""

import asyncio
import logging

from fastapi import APIRouter, Depends, Response
from sqlalchemy import text
from sqlalchemy.orm import Session

from ..api.dependencies.database import get_db
from ..core.constants import API_VERSION
from ..monitoring.prometheus_metrics import prometheus_metrics

logger = logging.getLogger(__name__)

router = APIRouter(tags=["monitoring"])


@router.get("/health")
async def health(db: Session = Depends(get_db)) -> Response:
    def _ping() -> None:
        db.execute(text("SELECT 1"))

    try:
        await asyncio.to_thread(_ping)
    except Exception as exc:
        logger.error(f"Health check database ping failed: {exc}")
        return Response(
            content='{"status":"degraded","database":"unavailable"}',
            media_type="application/json",
            status_code=503,
        )
    return Response(
        content=f'{{"status":"ok","version":"{API_VERSION}"}}',
        media_type="application/json",
    )


@router.get("/metrics/prometheus")
async def prometheus_scrape() -> Response:
    return Response(
        content=prometheus_metrics.get_metrics(),
        media_type=prometheus_metrics.get_content_type(),
        headers={"Cache-Control": "no-cache"},
    )
