from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    service_name: str = Field(default="service")
    log_level: str = Field(default="INFO")
    log_json: bool = Field(default=False)

    @field_validator("log_json", mode="before")
    @classmethod
    def _parse_log_json(cls, v: bool | str) -> bool | str:
        if v == "":
            return False
        return v

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, v: str) -> str:
        return v.upper()

    model_config = SettingsConfigDict(
        env_prefix="SERVICE_ERRORS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )
