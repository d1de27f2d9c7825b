# backend/hbot_booking/middleware/__init__.py
