"""
Environment configuration for the coach pickup service.
Values come from the process environment, optionally seeded from a .env file.
"""

import os
import logging
from pathlib import Path

from dotenv import load_dotenv, find_dotenv


load_dotenv(find_dotenv())

DEFAULT_DB_PATH = Path(__file__).resolve().parent.parent / "database" / "coach_pickup.db"


def get_secret_key() -> str:
    return os.environ.get("APP_SECRET_KEY") or "dev-secret-change-me"


def get_db_path() -> Path:
    value = os.environ.get("COACH_PICKUP_DB")
    return Path(value) if value else DEFAULT_DB_PATH


def get_token_days_valid() -> int:
    try:
        return int(os.environ.get("TOKEN_DAYS_VALID", "7"))
    except ValueError:
        return 7


def configure_logging() -> None:
    level = os.environ.get("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
