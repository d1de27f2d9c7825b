# backend/hbot_booking/api/__init__.py
