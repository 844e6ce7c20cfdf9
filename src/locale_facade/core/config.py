from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="LOCALE_FACADE_",
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    DEBUG: bool = False

    ENVIRONMENT: Literal["local", "staging", "production"] = "local"

    # Namespace used when resources or lookups don't name one
    DEFAULT_NAMESPACE: str = "translation"
    NS_SEPARATOR: str = ":"
    KEY_SEPARATOR: str = "."

    RESOURCE_FILE_FORMAT: Literal["json"] = "json"


settings = Settings()
