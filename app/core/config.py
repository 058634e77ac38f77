"""Application configuration with strict environment validation."""

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


_ENV_FILE = Path(__file__).resolve().parents[2] / ".env"


class Settings(BaseSettings):
    """Settings loaded from environment variables or .env file."""

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE if _ENV_FILE.exists() else None,
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    LOG_LEVEL: str = "INFO"
    METRICS_ENABLED: bool = True
    METRICS_NAMESPACE: str = "payconiq_checkout"
    METRICS_LATENCY_BUCKETS: list[float] = Field(default_factory=lambda: [0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0])

    # --- API metadata ---
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "Payconiq Checkout"
    HOST: str = "127.0.0.1"
    PORT: int = 8000

    # --- Payments / Payconiq ---
    PAYCONIQ_MERCHANT_ID: str = ""
    PAYCONIQ_ACCESS_TOKEN: str = ""
    PAYCONIQ_SANDBOX: bool = False
    PAYCONIQ_API_BASE_URL: str = "https://api.payconiq.com/v2"
    PAYCONIQ_SANDBOX_BASE_URL: str = "https://dev.payconiq.com/v2"
    # Empty sends the raw token; "Bearer" sends "Bearer <token>"
    PAYCONIQ_AUTH_SCHEME: str | None = None
    PAYCONIQ_CALLBACK_URL: str = ""
    PAYCONIQ_TIMEOUT_SECONDS: float = 20.0

    @staticmethod
    def _split_float_list(value: str | list[float] | None) -> list[float]:
        if value is None:
            return []
        if isinstance(value, str):
            value = [item.strip() for item in value.split(",") if item.strip()]
        floats: list[float] = []
        for item in value:
            try:
                floats.append(float(item))
            except (TypeError, ValueError):
                continue
        return floats

    @field_validator("METRICS_LATENCY_BUCKETS", mode="before")
    @classmethod
    def validate_metric_buckets(cls, value: str | list[float] | None) -> list[float]:
        return cls._split_float_list(value) or [0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0]

    @field_validator("PAYCONIQ_API_BASE_URL", "PAYCONIQ_SANDBOX_BASE_URL")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        value = value.strip().rstrip("/")
        if not value:
            raise ValueError("Payconiq base URLs must not be empty.")
        return value

    @field_validator("PAYCONIQ_AUTH_SCHEME", mode="before")
    @classmethod
    def empty_scheme_is_none(cls, value: str | None) -> str | None:
        if value is None or not str(value).strip():
            return None
        return str(value).strip()

    @field_validator("PAYCONIQ_TIMEOUT_SECONDS")
    @classmethod
    def validate_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("PAYCONIQ_TIMEOUT_SECONDS must be positive.")
        return value


settings = Settings()
