# backend/hbot_booking/routes/__init__.py
