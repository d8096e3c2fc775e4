# backend/khataplus/config.py
from __future__ import annotations
import os


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/khataplus.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///khataplus.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Used when an organization has no timezone of its own
    DEFAULT_TIMEZONE = os.environ.get("DEFAULT_TIMEZONE", "Asia/Kolkata")

    # Sales can only be edited within this many seconds of being recorded
    SALE_EDIT_WINDOW_SECONDS = _int_env("SALE_EDIT_WINDOW_SECONDS", 300)

    # Stock health / reorder forecasting
    STOCK_VELOCITY_WINDOW_DAYS = _int_env("STOCK_VELOCITY_WINDOW_DAYS", 30)
    STOCK_CRITICAL_DAYS = _int_env("STOCK_CRITICAL_DAYS", 3)
    STOCK_LOW_DAYS = _int_env("STOCK_LOW_DAYS", 7)
    STOCK_LEAD_TIME_DAYS = _int_env("STOCK_LEAD_TIME_DAYS", 7)
    STOCK_OVERSTOCK_MULTIPLE = _int_env("STOCK_OVERSTOCK_MULTIPLE", 8)
    STOCK_TARGET_COVER_DAYS = _int_env("STOCK_TARGET_COVER_DAYS", 14)
    STOCK_TOP_MOVERS = _int_env("STOCK_TOP_MOVERS", 3)
