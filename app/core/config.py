# app/core/config.py
from pydantic_settings import BaseSettings
from pydantic import Field
from pydantic_settings import SettingsConfigDict
from typing import Optional, List
from functools import lru_cache


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore", populate_by_name=True)

    # Application Settings
    APP_NAME: str = "Keyring Registration API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    DOCS_ENABLED: bool = True

    # Server Settings
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Database Settings (required, no fallback)
    DATABASE_URL: str = Field(..., min_length=1)
    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_TIMEOUT: int = 10  # seconds to wait for a pooled connection
    DB_POOL_RECYCLE: int = 300

    # Security Settings (required, no fallback)
    SECRET_KEY: str = Field(..., min_length=1, alias="JWT_SECRET_KEY", repr=False)
    ALGORITHM: str = "HS256"
    REGISTRATION_TOKEN_TTL_HOURS: int = 24
    DEVICE_TOKEN_TTL_DAYS: int = 7

    # OTP Settings
    OTP_EXPIRY_MINUTES: int = 5
    OTP_RESEND_INTERVAL_SECONDS: int = 60
    OTP_MAX_ATTEMPTS: int = 5
    NEW_USER_NAME: str = "New user"

    # CORS Settings
    ALLOWED_ORIGINS: str = "*"
    ALLOWED_METHODS: str = "GET,POST,OPTIONS"
    ALLOWED_HEADERS: str = "*"

    # Request limits
    MAX_REQUEST_SIZE: int = 256 * 1024  # key uploads carry at most a few hundred prekeys

    # Twilio Settings (SMS delivery of codes)
    TWILIO_ACCOUNT_SID: str = ""
    TWILIO_AUTH_TOKEN: str = Field(default="", repr=False)
    TWILIO_PHONE_NUMBER: str = ""

    # Logging Settings
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # Rate Limiting (per client IP)
    RATE_LIMIT_PER_MINUTE: int = 60
    REDIS_URL: Optional[str] = None

    # Helper methods for list envs
    def _split_csv(self, value: str) -> List[str]:
        if value is None:
            return []
        value = value.strip()
        if value == "":
            return []
        return [item.strip() for item in value.split(",")]

    @property
    def allowed_origins_list(self) -> List[str]:
        return self._split_csv(self.ALLOWED_ORIGINS)

    @property
    def allowed_methods_list(self) -> List[str]:
        return self._split_csv(self.ALLOWED_METHODS)

    @property
    def allowed_headers_list(self) -> List[str]:
        return self._split_csv(self.ALLOWED_HEADERS)

    @property
    def twilio_enabled(self) -> bool:
        return bool(self.TWILIO_ACCOUNT_SID and self.TWILIO_AUTH_TOKEN and self.TWILIO_PHONE_NUMBER)


@lru_cache()
def get_settings() -> Settings:
    # Raises pydantic.ValidationError when DATABASE_URL or JWT_SECRET_KEY is missing
    return Settings()
