"""Application settings for bet-resolution."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings; every field reads ``BET_RESOLUTION_<NAME>`` from env or ``.env``."""

    model_config = SettingsConfigDict(
        env_prefix="BET_RESOLUTION_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    profiles_dir: str = ""
    default_sport: str = "basketball"
    log_level: str = "WARNING"
