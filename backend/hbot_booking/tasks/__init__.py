# backend/hbot_booking/tasks/__init__.py
"""Celery background tasks."""
