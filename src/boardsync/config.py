"""Configuration loader for boardsync."""

from __future__ import annotations

import asyncio
import tomllib
from typing import TYPE_CHECKING, Literal, TypeAlias

import tomlkit
from pydantic import BaseModel, Field, field_validator

from boardsync.atomic import atomic_write
from boardsync.limits import ACTIVATION_DISTANCE, ERROR_RESET_DELAY, REQUEST_TIMEOUT
from boardsync.paths import get_config_path

if TYPE_CHECKING:
    from pathlib import Path


LogLevel: TypeAlias = Literal["DEBUG", "INFO", "WARNING", "ERROR"]


class DragConfig(BaseModel):
    """Gesture handling settings."""

    activation_distance: int = Field(
        default=ACTIVATION_DISTANCE,
        ge=0,
        description="Pointer travel before a pointer-down turns into a drag",
    )
    error_reset_delay: float = Field(
        default=ERROR_RESET_DELAY,
        ge=0,
        description="Seconds a failed drop stays in the error phase",
    )
    allow_column_drag: bool = Field(default=True, description="Allow reordering columns")


class SyncConfig(BaseModel):
    """Settings for talking to the board service."""

    base_url: str = Field(default="http://localhost:5000/api")
    api_token: str | None = Field(default=None, description="Bearer token for the board API")
    request_timeout: float = Field(default=REQUEST_TIMEOUT, gt=0)
    reload_after_move: bool = Field(
        default=True, description="Reload the board after every drop, confirmed or rolled back"
    )
    reload_after_batch: bool = Field(default=True)


class ValidationConfig(BaseModel):
    """Local move validation switches."""

    enforce_wip_limits: bool = Field(default=True)
    enforce_allowed_transitions: bool = Field(default=True)
    verify_invariants: bool = Field(
        default=False,
        description="Check board invariants after every view update (debugging aid)",
    )


class LoggingConfig(BaseModel):
    """Logging settings."""

    level: LogLevel = Field(default="WARNING")

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().upper()
        return value


class BoardSyncConfig(BaseModel):
    """Root configuration model."""

    drag: DragConfig = Field(default_factory=DragConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def load(cls, config_path: Path | None = None) -> BoardSyncConfig:
        """Load configuration from TOML file or use defaults."""
        if config_path is None:
            config_path = get_config_path()

        if config_path.exists():
            with open(config_path, "rb") as f:
                data = tomllib.load(f)
            return cls.model_validate(data)

        return cls()

    def to_toml(self) -> str:
        """Render the config as a TOML document."""
        doc = tomlkit.document()
        for section, model in (
            ("drag", self.drag),
            ("sync", self.sync),
            ("validation", self.validation),
            ("logging", self.logging),
        ):
            table = tomlkit.table()
            for key, value in model.model_dump().items():
                if value is not None:
                    table[key] = value
            doc[section] = table
        return tomlkit.dumps(doc)

    async def save(self, path: Path) -> None:
        """Serialize current config to TOML file.

        Args:
            path: Path to write config file (created if missing)
        """
        await asyncio.to_thread(atomic_write, path, self.to_toml())
