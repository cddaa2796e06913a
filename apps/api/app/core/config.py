"""Application configuration with environment variables."""

from urllib.parse import urlparse

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_JWT_SECRET = "change-this-in-production"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Environment
    ENV: str = "dev"

    # App Version (format: a.bc.de - major.feature.patch)
    VERSION: str = "0.01.00"

    # Database
    DATABASE_URL: str

    # Tokens (supports key rotation)
    JWT_SECRET: str = DEFAULT_JWT_SECRET
    JWT_SECRET_PREVIOUS: str = ""  # Set during rotation, clear after
    ACCESS_TOKEN_EXPIRES_MINUTES: int = 60
    REFRESH_TOKEN_EXPIRES_DAYS: int = 7
    RESET_TOKEN_EXPIRES_MINUTES: int = 60

    # Gemini
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-2.0-flash"
    AI_TIMEOUT_SECONDS: float = 120.0

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"

    # Frontend (invitation, lead and reset links)
    FRONTEND_URL: str = "http://localhost:3000"

    # Email (Resend). Sends are skipped when the key is empty.
    RESEND_API_KEY: str = ""
    FROM_EMAIL: str = "RFP Generator <noreply@rfpgenerator.app>"

    # File storage
    STORAGE_BACKEND: str = "local"  # local | s3
    LOCAL_STORAGE_PATH: str = "/tmp/rfp-uploads"
    S3_BUCKET: str = "rfp-uploads"
    S3_REGION: str = "us-east-1"
    S3_ENDPOINT_URL: str = ""
    AWS_ACCESS_KEY_ID: str = ""
    AWS_SECRET_ACCESS_KEY: str = ""

    # Error Tracking (optional, set in production)
    SENTRY_DSN: str = ""

    # Rate Limiting (slowapi limit strings, keyed by client IP)
    RATE_LIMIT_AUTH: str = "5/15minutes"
    RATE_LIMIT_AI_GENERATION: str = "20/hour"
    RATE_LIMIT_AI_REFINEMENT: str = "50/hour"
    RATE_LIMIT_UPLOAD: str = "10/hour"
    RATE_LIMIT_EXPORT: str = "30/hour"
    RATE_LIMIT_INVITATION: str = "50/day"
    RATE_LIMIT_ANALYTICS: str = "30/minute"
    RATE_LIMIT_API: str = "100/minute"

    @field_validator("FRONTEND_URL")
    @classmethod
    def validate_frontend_url(cls, v: str) -> str:
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"FRONTEND_URL must be an http(s) URL, got {v!r}")
        return v.rstrip("/")

    @field_validator("STORAGE_BACKEND")
    @classmethod
    def validate_storage_backend(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in ("local", "s3"):
            raise ValueError("STORAGE_BACKEND must be 'local' or 's3'")
        return v

    @model_validator(mode="after")
    def require_production_secrets(self) -> "Settings":
        """Outside dev/test, refuse to start without real secrets."""
        if self.ENV in ("dev", "test"):
            return self
        missing = []
        if not self.JWT_SECRET or self.JWT_SECRET == DEFAULT_JWT_SECRET:
            missing.append("JWT_SECRET")
        if not self.GEMINI_API_KEY:
            missing.append("GEMINI_API_KEY")
        if missing:
            raise ValueError(
                "Missing required environment variables: " + ", ".join(missing)
            )
        return self

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS_ORIGINS into a list."""
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def jwt_secrets(self) -> list[str]:
        """Returns list of valid secrets (current first, then previous if set)."""
        secrets = [self.JWT_SECRET]
        if self.JWT_SECRET_PREVIOUS:
            secrets.append(self.JWT_SECRET_PREVIOUS)
        return secrets


settings = Settings()
