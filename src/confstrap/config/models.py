from __future__ import annotations

from typing import Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

DEFAULT_TYPE = "json"
DEFAULT_FILENAME = "config"
DEFAULT_DOTENV_PATH = ".env"
DEFAULT_SEARCH_DIRS: Tuple[str, ...] = (
    ".",
    "$HOME",
    "/usr/local/etc",
    "/etc",
)


class RemoteDescriptor(BaseModel):
    """
    Identifies a remote key/value configuration provider.

    A remote source is only attempted when provider, dsn and key are all non-empty.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    provider: str = ""
    dsn: str = ""
    key: str = ""

    @property
    def is_complete(self) -> bool:
        return bool(self.provider and self.dsn and self.key)


class RetrySettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    strategy: Literal["exponential", "fixed"] = "exponential"

    # Bounds; at least one must be set.
    max_elapsed_seconds: Optional[float] = Field(default=120.0, gt=0)
    max_attempts: Optional[int] = Field(default=None, ge=1)

    # Backoff shape
    initial_delay_seconds: float = Field(default=0.5, ge=0)
    multiplier: float = Field(default=1.5, ge=1)
    max_delay_seconds: Optional[float] = Field(default=60.0, gt=0)

    @model_validator(mode="after")
    def _require_a_bound(self) -> "RetrySettings":
        if self.max_elapsed_seconds is None and self.max_attempts is None:
            raise ValueError("max_elapsed_seconds or max_attempts must be set")
        return self


class BootstrapOptions(BaseModel):
    """
    Options for one bootstrap run.

    Values given here win over built-in defaults; CONFSTRAP_* environment variables
    win over both (see `confstrap.config.options.resolve_options`).
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    config_type: str = DEFAULT_TYPE
    filename: str = DEFAULT_FILENAME
    env_prefix: str = ""
    search_dirs: Tuple[str, ...] = DEFAULT_SEARCH_DIRS
    remote: Optional[RemoteDescriptor] = None
    dotenv_path: Optional[str] = DEFAULT_DOTENV_PATH
    retry: RetrySettings = Field(default_factory=RetrySettings)


class FileRotationSettings(BaseModel):
    """
    Date-based rotation settings (daily).

    Maps onto the standard library TimedRotatingFileHandler.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    backup_count: int = 5


class FileLoggingSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    path: str = "logs/confstrap.log"
    rotation: FileRotationSettings = Field(default_factory=FileRotationSettings)


class LoggingSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    level: str = "INFO"
    file: Optional[FileLoggingSettings] = None
