from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env")

    # Forms API credentials
    forms_api_key: str = ""
    forms_base_url: str = "https://www.cognitoforms.com/api/forms"
    forms_api_timeout: float = 30.0

    # Most entries one paginated fetch may return; one more is an error
    forms_max_entries: int = 10000

    # Relative dataset paths resolve against this directory
    data_root: str = "."

    # Fields removed from proxied single-resource responses
    proxy_strip_fields: list[str] = ["Email"]

    cors_allow_origins: list[str] = ["*"]

    log_level: str = "INFO"
    # Overrides log_level for the sync pipeline loggers when set
    sync_log_level: str | None = None


@lru_cache
def get_settings() -> Settings:
    return Settings()
