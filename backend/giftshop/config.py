# backend/giftshop/config.py
from __future__ import annotations
import os


def _split_origins(raw: str) -> list[str]:
    return [o.strip() for o in raw.split(",") if o.strip()]


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/giftshop.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///giftshop.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Customer-facing tracking codes look like PINKIES1718000000000AB12C
    TRACKING_CODE_PREFIX = os.environ.get("TRACKING_CODE_PREFIX", "PINKIES")
    DEFAULT_COUNTRY = os.environ.get("DEFAULT_COUNTRY", "India")
    CURRENCY = os.environ.get("CURRENCY", "INR")

    ADMIN_SESSION_HOURS = int(os.environ.get("ADMIN_SESSION_HOURS", "24"))

    CORS_ORIGINS = _split_origins(os.environ.get(
        "CORS_ORIGINS",
        "https://pinkbears-shop.netlify.app,"
        "https://pinkbears-adminpage.netlify.app,"
        "http://localhost:3000,"
        "http://localhost:3001,"
        "http://localhost:5173",
    ))

    # Require an admin bearer token in the join_admin socket event
    REALTIME_ADMIN_AUTH = os.environ.get("REALTIME_ADMIN_AUTH", "0").lower() in ("1", "true", "yes")
