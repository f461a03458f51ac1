"""Tenantbot-Engine configuration via pydantic-settings."""

import warnings
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_INSECURE_DEFAULTS = {
    "admin_token": "dev-admin-secret",
}

DEFAULT_STOP_WORDS = [
    "is", "are", "am", "was", "the", "a", "an", "of", "to", "in", "on",
    "for", "with", "does", "do", "did", "how", "why", "when",
]

# Tenant attributes whose UTF-8 size is billed alongside message history.
DEFAULT_QUOTA_FIELDS = ["knowledge_text", "bot_name", "avatar", "widget_code"]


class TenantbotSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="TENANTBOT_")

    environment: str = "development"

    # Database
    db_url: str = "sqlite+aiosqlite:///./data/tenantbot.db"

    # API
    api_title: str = "Tenantbot-Engine"
    api_version: str = "0.1.0"
    admin_token: str = "dev-admin-secret"
    host: str = "0.0.0.0"
    port: int = 8080
    api_prefix: str = ""
    cors_origins: list[str] = ["*"]
    log_level: str = "INFO"

    # Tenant defaults
    default_fallback: str = "Sorry, I don't understand."
    default_bot_name: str = "Chatbot"
    default_storage_limit_mb: float = Field(default=1024.0, gt=0)
    default_retention_days: int = Field(default=30, ge=0)
    widget_base_url: str = "http://localhost:8080"

    # Reply resolution
    stop_words: list[str] = Field(default_factory=lambda: list(DEFAULT_STOP_WORDS))
    quota_fields: list[str] = Field(default_factory=lambda: list(DEFAULT_QUOTA_FIELDS))
    persist_user_messages: bool = True
    serialize_tenant_writes: bool = False

    # History listing
    message_page_size: int = 200

    @property
    def stop_word_set(self) -> frozenset[str]:
        return frozenset(w.lower() for w in self.stop_words)

    def validate_for_production(self) -> None:
        """Raise if insecure defaults are used in non-development environments."""
        insecure_fields = [
            field
            for field, default in _INSECURE_DEFAULTS.items()
            if getattr(self, field) == default
        ]

        if self.environment != "development" and insecure_fields:
            env_vars = ", ".join(f"TENANTBOT_{f.upper()}" for f in insecure_fields)
            raise RuntimeError(
                f"Insecure default values detected in '{self.environment}' environment. "
                f"Set these environment variables to secure values: {env_vars}. "
                "Generate secrets with: python -c \"import secrets; print(secrets.token_urlsafe(48))\""
            )

        if insecure_fields:
            warnings.warn(
                "Using the insecure default admin token, set TENANTBOT_ADMIN_TOKEN for production",
                UserWarning,
                stacklevel=2,
            )


@lru_cache
def get_settings() -> TenantbotSettings:
    settings = TenantbotSettings()
    settings.validate_for_production()
    return settings
