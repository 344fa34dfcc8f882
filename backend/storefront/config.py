# backend/storefront/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/storefront.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///storefront.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # bcrypt cost factor; tests lower it to keep fixtures fast
    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))

    # Product images (local object store, served under PUBLIC_ASSET_BASE_URL)
    UPLOAD_FOLDER = os.environ.get("UPLOAD_FOLDER")  # defaults to <instance>/uploads
    PUBLIC_ASSET_BASE_URL = os.environ.get("PUBLIC_ASSET_BASE_URL", "/assets")
    MAX_IMAGE_BYTES = int(os.environ.get("MAX_IMAGE_BYTES", str(5 * 1024 * 1024)))

    ORDERS_PAGE_SIZE = int(os.environ.get("ORDERS_PAGE_SIZE", "10"))

    # Realtime notification feed
    NOTIFICATION_FEED_QUEUE_SIZE = int(os.environ.get("NOTIFICATION_FEED_QUEUE_SIZE", "100"))
    NOTIFICATION_STREAM_HEARTBEAT_SECONDS = float(
        os.environ.get("NOTIFICATION_STREAM_HEARTBEAT_SECONDS", "15")
    )

    CORS_ALLOWED_ORIGINS = {
        origin.strip()
        for origin in os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:3000,http://127.0.0.1:3000",
        ).split(",")
        if origin.strip()
    }
