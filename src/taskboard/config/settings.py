"""Application settings."""

from pathlib import Path
from typing import Literal

from pydantic import Field, HttpUrl, model_validator
from pydantic_settings import BaseSettings

from ..models import MAX_COLUMNS_PER_BOARD


class Settings(BaseSettings):
    """Application settings."""

    backend: Literal["filesystem", "rest"] = Field(
        default="filesystem",
        description="Where boards are stored",
    )

    board_root: Path = Field(
        default=Path(".boards"),
        description="Directory holding one sub-directory per board (filesystem backend)",
    )

    board_id: str = Field(
        default="default",
        description="Board to operate on",
    )

    store_url: HttpUrl | None = Field(
        default=None,
        description="Base URL of the hosted store (rest backend)",
    )

    api_key: str | None = Field(
        default=None,
        description="Public API key sent with every store request",
    )

    access_token: str | None = Field(
        default=None,
        description="User access token for the store",
    )

    refresh_token: str | None = Field(
        default=None,
        description="Refresh token used to renew the access token",
    )

    max_columns: int = Field(
        default=MAX_COLUMNS_PER_BOARD,
        ge=1,
        description="Maximum number of columns per board",
    )

    verbose: int = Field(
        default=0,
        description="Verbosity level (0=off, 1=INFO, 2+=DEBUG)",
    )

    log_file: Path | None = Field(
        default=None,
        description="Optional path to write logs to file",
    )

    model_config = {
        "env_prefix": "TASKBOARD_",
    }

    @model_validator(mode="after")
    def check_rest_backend(self) -> "Settings":
        """The rest backend needs a store URL and an API key."""
        if self.backend == "rest" and (self.store_url is None or not self.api_key):
            raise ValueError("backend 'rest' requires store_url and api_key")
        return self

    @property
    def base_url(self) -> str:
        """Store URL without a trailing slash."""
        return str(self.store_url).rstrip("/") if self.store_url else ""
