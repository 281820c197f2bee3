"""Connection settings for the Neo4j transport."""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Optional, Tuple

from pydantic import Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing_extensions import Literal

from .errors import ConfigurationError

DEFAULT_URI = "bolt://localhost:7687"


class Neo4jSettings(BaseSettings):
    """Connection configuration loaded from keywords, environment or .env file.

    Fields read ``NEO4J_<FIELD>``. The bare ``NEO4J`` variable is honoured as
    the host when no ``uri`` was given any other way.
    """

    model_config = SettingsConfigDict(
        env_prefix="NEO4J_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    uri: str = DEFAULT_URI
    username: Optional[str] = None
    password: Optional[str] = None
    database: Optional[str] = None
    parameter_style: Literal["dollar", "braces"] = "dollar"
    legacy_host: Optional[str] = Field(default=None, validation_alias="NEO4J", exclude=True)

    @model_validator(mode="after")
    def _apply_legacy_host(self) -> "Neo4jSettings":
        if self.legacy_host and "uri" not in self.model_fields_set:
            self.uri = self.legacy_host
        return self

    @classmethod
    def from_env(cls, **overrides: Any) -> "Neo4jSettings":
        """Build settings from the environment, with keyword overrides on top."""
        try:
            return cls(**overrides)
        except ValidationError as err:
            raise ConfigurationError(f"invalid Neo4j settings: {err}") from err

    def auth(self) -> Optional[Tuple[str, str]]:
        if self.username:
            return (self.username, self.password or "")
        if self.password:
            raise ConfigurationError("NEO4J_PASSWORD is set but NEO4J_USERNAME is not")
        return None


@lru_cache(maxsize=1)
def get_settings() -> Neo4jSettings:
    """Return cached settings instance."""
    return Neo4jSettings.from_env()
