import os
from dataclasses import dataclass
from typing import Optional
from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


@dataclass
class Settings:
    # API settings
    api_host: str = os.getenv("API_HOST", "127.0.0.1")
    api_port: int = int(os.getenv("API_PORT", "8000"))

    # Database settings
    db_file: Optional[str] = os.getenv("LIBRARY_DB_FILE")

    # Lending settings
    default_loan_days: int = int(os.getenv("DEFAULT_LOAN_DAYS", "14"))

    # Notification settings
    enable_email_notifications: bool = _flag("ENABLE_EMAIL_NOTIFICATIONS", "True")
    notification_from_email: str = os.getenv("NOTIFICATION_FROM_EMAIL", "noreply@library.com")

    # Application settings
    app_name: str = os.getenv("APP_NAME", "Library Lending API")
    app_version: str = os.getenv("APP_VERSION", "1.0.0")
    debug: bool = _flag("DEBUG", "False")
    environment: str = os.getenv("ENVIRONMENT", "development")
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()


settings = Settings()
