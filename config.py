"""
Application settings, read from the environment (and a local .env file).
"""
from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_name: str = "Portfolio Blog API"
    environment: str = "development"
    api_prefix: str = "/api"
    host: str = "0.0.0.0"
    port: int = 5000
    log_level: str = "INFO"

    # Storage
    database_url: str = "mongodb://localhost:27017"
    database_name: str = "portfolio_blog"
    database_timeout_ms: int = 5000

    # Auth
    jwt_secret: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 60 * 24
    password_hash_rounds: int = 12

    cors_origins: List[str] = [
        "https://portfolio-front-end-indol.vercel.app",
        "http://localhost:3000",
    ]

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


@lru_cache
def get_settings() -> Settings:
    return Settings()
