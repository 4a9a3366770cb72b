"""
Application configuration — loaded once at import time.
"""

import os

API_BASE_URL = os.getenv("ORDER_ADMIN_API_URL", "http://localhost:3001/api").rstrip("/")
API_TIMEOUT = float(os.getenv("ORDER_ADMIN_TIMEOUT", "10"))

LOG_LEVEL = os.getenv("ORDER_ADMIN_LOG_LEVEL", "INFO").upper()
DEBUG = os.getenv("DEBUG", "0") == "1"

CORS_ORIGINS = [
    o.strip() for o in os.getenv("ORDER_ADMIN_CORS_ORIGINS", "*").split(",") if o.strip()
]

HOST = os.getenv("ORDER_ADMIN_HOST", "0.0.0.0")
PORT = int(os.getenv("ORDER_ADMIN_PORT", "8000"))

# Open order-form sessions kept in memory; the oldest idle ones are dropped beyond this.
MAX_ORDER_FORMS = int(os.getenv("ORDER_ADMIN_MAX_ORDER_FORMS", "100"))
