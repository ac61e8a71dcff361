"""Application settings and configuration."""

from pydantic_settings import BaseSettings, SettingsConfigDict

_INSECURE_JWT_DEFAULTS = {"change-me-in-production", "secret", "your_jwt_secret_key_here_at_least_32_characters"}


class Settings(BaseSettings):
    """Application configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "earnhub"
    env: str = "development"
    log_level: str = "INFO"
    log_format: str = "console"  # console or json

    # Server
    host: str = "0.0.0.0"
    port: int = 3000

    # JWT
    jwt_secret_key: str = "change-me-in-production"
    token_expire_days: int = 30
    cookie_name: str = "token"

    # Database
    database_url: str = "sqlite:///./earnhub.db"

    # Balance rules
    signup_bonus: int = 2000  # Starting balance for new accounts
    referral_bonus: int = 2000  # Credited to the referrer
    daily_reward_amount: int = 500
    claim_interval_hours: int = 24

    @property
    def is_production(self) -> bool:
        return self.env == "production"


def check_production_secrets(settings: Settings) -> None:
    """Abort startup when production runs with a weak JWT secret.

    Raises:
        SystemExit: If the secret is a known default or shorter than 32 chars
    """
    if not settings.is_production:
        return
    if settings.jwt_secret_key in _INSECURE_JWT_DEFAULTS or len(settings.jwt_secret_key) < 32:
        raise SystemExit(
            "FATAL: JWT_SECRET_KEY is insecure or too short (min 32 chars). "
            "Set a strong random value:  openssl rand -hex 32"
        )


# Global settings instance
settings = Settings()
