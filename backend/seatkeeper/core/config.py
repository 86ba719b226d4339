from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    DB_URL: str = "sqlite:///./seatkeeper.db"
    DB_TIMEOUT_SECONDS: int = 5

    JWT_SECRET: str = "CHANGE_ME_DEV_SECRET"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRES_MINUTES: int = 60 * 12  # one dealer shift

    CORS_ORIGINS: str = "http://localhost:5173,http://127.0.0.1:5173"

    ADMIN_USERNAME: str = "admin"
    ADMIN_PASSWORD: str = "admin"

    DEFAULT_MAX_SEATS: int = 9
    LOG_LEVEL: str = "INFO"

    def cors_list(self) -> list[str]:
        return [x.strip() for x in self.CORS_ORIGINS.split(",") if x.strip()]


settings = Settings()
