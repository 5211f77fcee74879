from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=False, extra="ignore"
    )

    HTTP_PORT: int = 8000
    OGONE_LOGIN: str | None = None
    OGONE_USER: str | None = None
    OGONE_PASSWORD: str | None = Field(
        default=None,
        validation_alias=AliasChoices("OGONE_PASSWORD", "OGONE_PSWD"),
    )
    OGONE_CURRENCY: str | None = None
    OGONE_SIGNATURE: str | None = None
    OGONE_SIGNATURE_ENCRYPTOR: Literal["sha1", "sha256", "sha512"] = "sha1"
    # Accounts created after 10 May 2010 sign every parameter, not a fixed subset.
    OGONE_CREATED_AFTER_10_MAY_2010: bool = False
    OGONE_TEST: bool = False
    OGONE_HTTP_TIMEOUT: float = 20.0


@lru_cache
def get_settings() -> Settings:
    """Get cached Settings instance."""
    return Settings()
