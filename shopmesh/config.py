import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Force-load .env from the repository root
BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(dotenv_path=BASE_DIR / ".env")


def _float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be a number, got {raw!r}. Check your .env file.")


def _optional_int(name: str) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}. Check your .env file.")


SERVICE_VERSION = os.getenv("SERVICE_VERSION", "v1")

PAYMENT_SERVICE_URL = os.getenv("PAYMENT_SERVICE_URL", "http://payment-service:3004")
NOTIFICATION_SERVICE_URL = os.getenv("NOTIFICATION_SERVICE_URL", "http://notification-service:3005")

PAYMENT_TIMEOUT_SECONDS = _float("PAYMENT_TIMEOUT_SECONDS", 5.0)
NOTIFICATION_TIMEOUT_SECONDS = _float("NOTIFICATION_TIMEOUT_SECONDS", 5.0)

PAYMENT_SUCCESS_RATE = _float("PAYMENT_SUCCESS_RATE", 0.9)
if not 0.0 <= PAYMENT_SUCCESS_RATE <= 1.0:
    raise RuntimeError("PAYMENT_SUCCESS_RATE must be between 0 and 1. Check your .env file.")
PAYMENT_RANDOM_SEED = _optional_int("PAYMENT_RANDOM_SEED")

DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "USD")
DEFAULT_PAYMENT_METHOD = os.getenv("DEFAULT_PAYMENT_METHOD", "credit_card")

# In-memory SQLite unless overridden; nothing survives a restart
ORDERS_DATABASE_URL = os.getenv("ORDERS_DATABASE_URL", "sqlite://")
PAYMENTS_DATABASE_URL = os.getenv("PAYMENTS_DATABASE_URL", "sqlite://")
NOTIFICATIONS_DATABASE_URL = os.getenv("NOTIFICATIONS_DATABASE_URL", "sqlite://")
