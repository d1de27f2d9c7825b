# backend/hbot_booking/tasks/beat_schedule.py
"""
Celery Beat schedule configuration.
"""

from datetime import timedelta
from typing import Any, Dict

from hbot_booking.core.config import settings


def get_beat_schedule() -> Dict[str, Dict[str, Any]]:
    return {
        "sweep-missing-credit-grants": {
            "task": "hbot_booking.tasks.reconciliation_tasks.sweep_missing_credit_grants",
            "schedule": timedelta(minutes=settings.reconciliation_sweep_minutes),
            "options": {"queue": "payments", "priority": 5},
        },
    }
