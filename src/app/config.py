from __future__ import annotations

from typing import Literal, Optional

from pydantic import AnyUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8-sig",
        case_sensitive=False,
        extra="ignore",
    )

    SUPABASE_URL: AnyUrl
    SUPABASE_SERVICE_ROLE_KEY: str
    APP_ENV: str = "local"
    LOG_LEVEL: str = "INFO"
    FRONTEND_CORS_ORIGINS: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000"],
    )

    # Speech engine
    OPENAI_API_KEY: str = ""
    TRANSCRIPTION_MODEL: str = "whisper-1"
    DEFAULT_CONFIDENCE_SCORE: float = 0.95

    # Blob storage
    STORAGE_BACKEND: Literal["supabase", "r2"] = "supabase"
    STORAGE_BUCKET: str = "audio-files"
    R2_ACCOUNT_ID: Optional[str] = None
    R2_ACCESS_KEY_ID: Optional[str] = None
    R2_SECRET_ACCESS_KEY: Optional[str] = None
    R2_BUCKET_NAME: Optional[str] = None
    R2_PUBLIC_URL: Optional[str] = None

    # Billing
    STRIPE_PRO_PRICE_ID: str = ""
    STRIPE_ENTERPRISE_PRICE_ID: str = ""

    def validate_runtime(self) -> list[str]:
        """Return configuration problems that only matter once requests are served."""
        errors = []
        if not self.OPENAI_API_KEY:
            errors.append("OPENAI_API_KEY is required")
        if self.STORAGE_BACKEND == "r2":
            for name in ("R2_ACCOUNT_ID", "R2_ACCESS_KEY_ID", "R2_SECRET_ACCESS_KEY", "R2_BUCKET_NAME", "R2_PUBLIC_URL"):
                if not getattr(self, name):
                    errors.append(f"{name} is required when STORAGE_BACKEND=r2")
        return errors


settings = Settings()
