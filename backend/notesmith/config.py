"""
NoteSmith Backend — Application Configuration
===============================================

What:  Centralized configuration management using Pydantic Settings.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a `settings` object.
Who:   Read by the application factory (main.py) when it wires services.
       Services themselves never import settings; they receive an
       already-constructed OpenRouterClient so they stay testable without
       environment variables.
"""

from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have development defaults. Without TEXT_AI_API_KEY the
    service still runs: every note is produced by the heuristic generator.
    """

    # ── Text model (OpenRouter chat completions) ──────────────────────────
    text_ai_api_key: str = Field(
        default="",
        description="OpenRouter API key used for note generation and chat",
    )
    text_ai_model: str = Field(default="google/gemini-2.0-flash-001")
    text_ai_max_tokens: int = Field(default=1200, ge=64, le=32_000)

    # What: Number of trailing chat messages forwarded to the model
    text_ai_max_history: int = Field(default=6, ge=1, le=50)

    # Sent as the X-Title header
    app_name: str = Field(
        default="AI Notes Generator",
        validation_alias="TEXT_AI_APP_NAME",
    )

    # ── Image model ───────────────────────────────────────────────────────
    # Falls back to the text key when unset (see image_api_key)
    image_ai_api_key: str = Field(default="")
    image_ai_max_tokens: int = Field(default=700, ge=64, le=8_000)
    image_ai_temperature: float = Field(default=0.4, ge=0.0, le=2.0)

    # ── Transport ─────────────────────────────────────────────────────────
    openrouter_base_url: str = Field(default="https://openrouter.ai/api/v1")

    # Sent as the HTTP-Referer header
    site_url: str = Field(default="http://localhost:3000")

    # Seconds; applies to the whole request (connect + read)
    request_timeout: float = Field(default=60.0, gt=0, le=600)

    # ── CORS ──────────────────────────────────────────────────────────────
    cors_origins: str = Field(default="http://localhost:3000")

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=8000, ge=1024, le=65535)

    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    @property
    def image_api_key(self) -> Optional[str]:
        """Key for image analysis: IMAGE_AI_API_KEY, else TEXT_AI_API_KEY."""
        key = self.image_ai_api_key.strip() or self.text_ai_api_key.strip()
        return key or None

    @property
    def remote_configured(self) -> bool:
        return bool(self.text_ai_api_key.strip())

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "populate_by_name": True,
    }

    def validate_required_for_production(self) -> None:
        """
        What:  Reports settings that leave the service in degraded mode.
        When:  Called during app startup (lifespan).
        How:   Raises ValueError listing every problem; the caller logs it.
        """
        errors = []
        if not self.remote_configured:
            errors.append(
                "TEXT_AI_API_KEY is not set. "
                "Notes will be generated by the heuristic fallback only."
            )
        if errors:
            raise ValueError(
                "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
            )


settings = Settings()
