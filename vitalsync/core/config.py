from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App
    PROJECT_NAME: str = "VitalSync"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = ""  # local, dev, prod (from .env)

    # MongoDB (from .env)
    MONGODB_URL: str = "mongodb://localhost:27017"
    MONGODB_DB_NAME: str = "vitalsync"

    # CORS (from .env, JSON list)
    BACKEND_CORS_ORIGINS: List[str] = []

    # Logging & Sentry
    LOG_LEVEL: str = "INFO"
    SENTRY_DSN: str | None = None

    # Identity provider tokens (HS256, shared secret)
    SECRET_KEY: str = ""
    TOKEN_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Vitals
    THRESHOLDS_PATH: str | None = None
    VITALS_SOURCE: str = "synthetic"  # synthetic, live
    VITALS_REFRESH_SECONDS: float = 3.0

    # Notifications (absent secrets disable the channel)
    NOTIFICATION_TIMEOUT_SECONDS: float = 10.0
    RESEND_API_KEY: str | None = None
    ALERT_EMAIL_FROM: str = "VitalSync Alerts <alerts@vitalsync.app>"
    TWILIO_ACCOUNT_SID: str | None = None
    TWILIO_AUTH_TOKEN: str | None = None
    TWILIO_PHONE_NUMBER: str | None = None
    IDENTITY_API_URL: str | None = None
    IDENTITY_SERVICE_KEY: str | None = None

    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=True, extra="ignore"
    )


settings = Settings()
