"""
PitchRoom – Application configuration.
Reads environment variables from a .env file via pydantic-settings.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration loaded from environment / .env."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # ── App ──
    APP_NAME: str = "PitchRoom"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # ── Database ──
    DATABASE_URL: str = "sqlite+aiosqlite:///./pitchroom.db"

    # ── JWT ──
    SECRET_KEY: str = "pitchroom-dev-secret"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # ── Funding rounds ──
    OPTION_POOL_PERCENT: float = 15.0
    DEFAULT_ROUND_ASK: int = 500000
    DEFAULT_ROUND_EQUITY: float = 8.0
    DEFAULT_ROUND_DAYS: int = 14

    # ── Pitch-room chat ──
    CHAT_HISTORY_LIMIT: int = 50

settings = Settings()
