# backend/hbot_booking/schemas/__init__.py
"""Pydantic request and response schemas for the v1 API."""
