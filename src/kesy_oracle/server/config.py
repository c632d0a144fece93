"""Configuration for the HTTP trigger server.

Workflow settings live in :mod:`kesy_oracle.oracle.config`; this only covers
how the server itself is exposed.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServerSettings(BaseSettings):
    """Settings for the REST trigger."""

    host: str = Field(default="127.0.0.1", validation_alias="KESY_SERVER_HOST")
    port: int = Field(default=8080, gt=0, lt=65536, validation_alias="KESY_SERVER_PORT")

    cors_origins: str = Field(
        default="",
        validation_alias="KESY_SERVER_CORS_ORIGINS",
        description="Comma-separated list of allowed CORS origins.",
    )

    model_config = SettingsConfigDict(env_prefix="", env_file=".env", extra="ignore", frozen=True)

    def parsed_cors_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]
