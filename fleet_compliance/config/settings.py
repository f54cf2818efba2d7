"""
Application Settings.

All configuration comes from .env / environment variables.
"""

from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Settings loaded from environment variables."""

    # --- App ---
    env: str = "development"
    debug: bool = True
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # --- Database ---
    database_url: str = "sqlite:///fleet_compliance.db"

    # --- Document lifecycle ---
    expiring_thresholds: list[int] = [15, 7, 3, 1]
    grace_thresholds: list[int] = [1, 7, 14]
    deactivation_after_days: int = 30
    summary_window_days: int = 30

    # --- Subscriptions ---
    subscription_reminder_days: list[int] = [7, 3, 1]

    # --- Sweep ---
    sweep_max_workers: int = 4
    sweep_company_timeout_seconds: float = 120.0

    # --- Email (SMTP) ---
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""
    smtp_use_tls: bool = True
    smtp_timeout_seconds: float = 15.0
    email_from_address: str = "noreply@fleet-compliance.local"

    # --- SMS gateway ---
    sms_api_url: str = "https://api.mobilesasa.com/v1/send/message"
    sms_api_token: str = ""
    sms_sender_id: str = "TRUK LTD"
    sms_default_country_code: str = "254"
    sms_timeout_seconds: float = 10.0

    # --- Notifications ---
    sender_name: str = "TRUK LTD"
    notifications_dry_run: bool = False     # log instead of sending

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


@lru_cache
def get_settings() -> Settings:
    """Settings singleton."""
    return Settings()
