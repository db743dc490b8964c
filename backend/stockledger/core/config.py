"""Application configuration with safe defaults.

Environment variables override all defaults.
ACCESS_TOKEN must be set in .env for production - will fail fast if missing.
"""

import os
from pathlib import Path
from typing import List


# Load .env for local development
from dotenv import load_dotenv

_BACKEND_DIR = Path(__file__).resolve().parents[2]
load_dotenv(dotenv_path=_BACKEND_DIR / ".env", override=False)


class Settings:
    # Database Configuration
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./stockledger.db")

    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    DEBUG: bool = ENVIRONMENT == "development"

    # Session gate - every read/write requires this bearer token
    ACCESS_TOKEN: str = os.getenv("ACCESS_TOKEN", "")
    if not ACCESS_TOKEN:
        if ENVIRONMENT == "production":
            raise ValueError(
                "ACCESS_TOKEN must be set in production environment. "
                "Generate with: python -c 'import secrets; print(secrets.token_urlsafe(32))'"
            )
        import warnings
        warnings.warn(
            "ACCESS_TOKEN not set in environment. Using development default. "
            "Set ACCESS_TOKEN in .env to a strong random value.",
            RuntimeWarning
        )
        ACCESS_TOKEN = "development-only-token"

    # CORS (specific origins only, no wildcards)
    CORS_ORIGINS: List[str] = [
        origin.strip()
        for origin in os.getenv(
            "CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000"
        ).split(",")
        if origin.strip()
    ]

    # Ledger rules
    EXPIRY_WARNING_DAYS: int = int(os.getenv("EXPIRY_WARNING_DAYS", "30"))  # inclusive window

    # Purchase saga: pending purchases older than this are reconciled
    PENDING_PURCHASE_TIMEOUT_SECONDS: int = int(os.getenv("PENDING_PURCHASE_TIMEOUT_SECONDS", "300"))
    RECONCILE_INTERVAL_SECONDS: int = int(os.getenv("RECONCILE_INTERVAL_SECONDS", "600"))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_DIR: Path = Path(os.getenv("LOG_DIR", str(_BACKEND_DIR / "logs")))


settings = Settings()
