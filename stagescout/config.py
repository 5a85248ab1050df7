# stagescout/config.py
from typing import List, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Core
    APP_NAME: str = "StageScout API"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # MongoDB
    MONGODB_URL: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection URL",
    )
    DATABASE_NAME: str = "stagescout"

    # JWT
    SECRET_KEY: str = Field(
        min_length=32,
        description="Secret key for JWT token signing (min 32 chars)",
    )
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 30  # 30 days

    # CORS
    FRONTEND_URL: str = "http://localhost:5173"
    CORS_ORIGINS: List[str] = Field(default_factory=list)

    # Realtime
    WS_REQUIRE_TOKEN: bool = True
    PRESENCE_IDENTIFY_POLICY: Literal["append", "replace"] = "append"
    RATE_LIMIT_PER_MINUTE: int = 120

    # Message Limits
    MAX_MESSAGE_LENGTH: int = 4000

    # Media
    MEDIA_ROOT: str = "uploads"
    MEDIA_URL: str = "/media"
    MAX_UPLOAD_SIZE: int = 50 * 1024 * 1024

    # Business rules
    MAX_GROUPS_PER_USER: int = 2
    USERNAME_CHANGE_COOLDOWN_DAYS: int = 30
    LEADERBOARD_DEFAULT_LIMIT: int = 10

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=True,
    )

    @property
    def allowed_origins(self) -> List[str]:
        origins = list(self.CORS_ORIGINS)
        if self.FRONTEND_URL and self.FRONTEND_URL not in origins:
            origins.append(self.FRONTEND_URL)
        return origins


settings = Settings()
