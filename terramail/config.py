from __future__ import annotations

from typing import Literal

from pydantic import ConfigDict, Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    store_backend: Literal["sql", "json"] = Field("sql", alias="STORE_BACKEND")

    database_url: str = Field("sqlite:///./terramail.db", alias="DATABASE_URL")
    db_create_all: bool = Field(False, alias="DB_CREATE_ALL")
    json_store_path: str = Field(
        "data/terramail.json",
        alias="JSON_STORE_PATH",
        description="Location of the flat-file store when STORE_BACKEND=json",
    )

    jwt_secret: str = Field("test-jwt-secret", alias="JWT_SECRET")
    jwt_algorithm: str = Field("HS256", alias="JWT_ALGORITHM")
    jwt_exp_minutes: int = Field(60, alias="JWT_EXP_MINUTES")

    bcrypt_rounds: int = Field(10, alias="BCRYPT_ROUNDS")

    login_max_failures: int = Field(5, alias="LOGIN_MAX_FAILURES")
    login_window_minutes: int = Field(15, alias="LOGIN_WINDOW_MINUTES")
    login_attempts_retention: int = Field(1000, alias="LOGIN_ATTEMPTS_RETENTION")

    trusted_proxies: list[str] = Field(
        default_factory=lambda: ["127.0.0.1", "testclient"]
    )
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://127.0.0.1:5173"]
    )

    seed_defaults: bool = Field(True, alias="SEED_DEFAULTS")
    admin_email: str = Field("admin@terramail.com", alias="ADMIN_EMAIL")
    admin_password: str = Field("admin123", alias="ADMIN_PASSWORD")

    log_level: str = Field("INFO", alias="LOG_LEVEL")

    model_config = ConfigDict(
        extra="ignore",
        env_file=".env",
        case_sensitive=False,
        populate_by_name=True,
    )
