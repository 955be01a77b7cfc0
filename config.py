"""
Configuration for the CloudPrint coordinator.

Values come from the environment (a .env file is loaded first). The
printer agent has its own settings in agent/config.py.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env file early so environment variables are available for Config class
load_dotenv(override=True)

# Base directory (where this file lives)
BASE_DIR = Path(__file__).resolve().parent


def _env_bool(name: str, default: str = "0") -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Default configuration for the Flask application."""

    # Flask settings
    SECRET_KEY = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")
    UPLOAD_FOLDER = os.environ.get("UPLOAD_FOLDER", str(BASE_DIR / "uploads"))
    MAX_CONTENT_LENGTH = 10 * 1024 * 1024  # 10 MB uploads
    ENVIRONMENT = os.environ.get("FLASK_ENV", "development")
    DEBUG = os.environ.get("FLASK_DEBUG", "1") == "1"
    TESTING = False

    # Job store (SQLite file; ":memory:" for throwaway runs)
    JOB_DB_PATH = os.environ.get("JOB_DB_PATH", str(BASE_DIR / "data" / "jobs.db"))

    # ==========================================================================
    # Pricing
    # ==========================================================================
    # amount = pages x PER_PAGE_RATE x copies, fixed when the job is created
    PER_PAGE_RATE = float(os.environ.get("PER_PAGE_RATE", "2"))
    CURRENCY = os.environ.get("CURRENCY", "INR")

    # ==========================================================================
    # Razorpay
    # ==========================================================================
    # The key secret also verifies checkout signatures. Without it every
    # payment confirmation is rejected.
    RAZORPAY_KEY_ID = os.environ.get("RAZORPAY_KEY_ID", "")
    RAZORPAY_KEY_SECRET = os.environ.get("RAZORPAY_KEY_SECRET", "")
    RAZORPAY_API_URL = os.environ.get("RAZORPAY_API_URL", "https://api.razorpay.com/v1/orders")
    PAYMENT_PROVIDER_TIMEOUT = float(os.environ.get("PAYMENT_PROVIDER_TIMEOUT", "15"))

    # Job listing
    JOB_LIST_LIMIT = int(os.environ.get("JOB_LIST_LIMIT", "50"))
    JOB_LIST_MAX = int(os.environ.get("JOB_LIST_MAX", "200"))

    # ==========================================================================
    # Dispatch
    # ==========================================================================
    DISPATCH_NAMESPACE = os.environ.get("DISPATCH_NAMESPACE", "/connectprinter")
    # When an agent announces its printer name, resend the paid jobs still
    # pending for that name to that agent only.
    DISPATCH_REPLAY_ON_REGISTER = _env_bool("DISPATCH_REPLAY_ON_REGISTER")
    SOCKETIO_CORS_ALLOWED_ORIGINS = os.environ.get("SOCKETIO_CORS_ALLOWED_ORIGINS", "*")


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False
    TESTING = False


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    TESTING = False


class TestingConfig(Config):
    """Testing configuration."""
    DEBUG = False
    TESTING = True
    JOB_DB_PATH = ":memory:"
    PER_PAGE_RATE = 2
    RAZORPAY_KEY_ID = "rzp_test_key"
    RAZORPAY_KEY_SECRET = "test_secret"
    DISPATCH_REPLAY_ON_REGISTER = False
