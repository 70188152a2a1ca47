from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=None, extra="ignore")

    app_env: str = "dev"
    database_url: str = "postgresql+asyncpg://colorspec:colorspec@db:5432/colorspec"
    database_echo: bool = False
    database_pool_size: int = 5
    log_level: str = "INFO"
    cors_allow_origins: list[str] = ["*"]

    # Synopsis generation
    #
    # Annotations without a room are aggregated under this label and take part
    # in universal detection like any other room.
    unassigned_room_label: str = "Global/No Room Assigned"
    synopsis_notes_separator: str = "; "

    # Quick-pick suggestions
    suggestion_limit_default: int = 10
    suggestion_limit_max: int = 100


settings = Settings()
