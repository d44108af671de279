"""Configuration schema with Pydantic for type safety and validation."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# Roughly 5 in 256, the per-token odds the maze has always used.
DEFAULT_PARAGRAPH_PROBABILITY = 5 / 256
DEFAULT_LINK_PROBABILITY = 5 / 256
DEFAULT_LINKPATH = "/maze"
DEFAULT_MIN_TOKENS = 250
DEFAULT_MAX_TOKENS = 12500


class LogLevel(str, Enum):
    """Logging level options."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


def normalize_linkpath(value: str) -> str:
    """Return ``value`` with exactly one leading slash and no trailing slash."""
    stripped = value.strip().strip("/")
    return f"/{stripped}" if stripped else ""


class AssemblyConfig(BaseModel):
    """Per-document knobs for turning a token stream into HTML."""

    model_config = ConfigDict(frozen=True)

    paragraph_probability: float = Field(
        default=DEFAULT_PARAGRAPH_PROBABILITY, ge=0.0, le=1.0
    )
    link_probability: float = Field(default=DEFAULT_LINK_PROBABILITY, ge=0.0, le=1.0)
    linkpath: str = Field(default=DEFAULT_LINKPATH)
    decoy_path: Optional[str] = None
    decoy_probability: float = Field(default=0.0, ge=0.0, le=1.0)
    decoy_once: bool = Field(default=True)

    @field_validator("linkpath")
    @classmethod
    def validate_linkpath(cls, value: str) -> str:
        return normalize_linkpath(value)

    @field_validator("decoy_path")
    @classmethod
    def validate_decoy_path(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        return value or None

    @property
    def decoy_enabled(self) -> bool:
        return self.decoy_path is not None and self.decoy_probability > 0.0


class MazeConfig(BaseModel):
    """Maze server configuration."""

    train_dir: str = Field(min_length=1, description="Training corpus root")
    listen_addr: str = Field(default="0.0.0.0", min_length=1)
    listen_port: int = Field(default=3005, ge=1, le=65535)
    linkpath: str = Field(default=DEFAULT_LINKPATH)
    min_tokens: int = Field(default=DEFAULT_MIN_TOKENS, ge=0)
    max_tokens: int = Field(default=DEFAULT_MAX_TOKENS, ge=0)
    paragraph_probability: float = Field(
        default=DEFAULT_PARAGRAPH_PROBABILITY, ge=0.0, le=1.0
    )
    link_probability: float = Field(default=DEFAULT_LINK_PROBABILITY, ge=0.0, le=1.0)
    decoy_path: Optional[str] = None
    decoy_probability: float = Field(default=0.0, ge=0.0, le=1.0)
    health_path: str = Field(default="/_maze/health")
    metrics_path: str = Field(default="/_maze/metrics")
    log_level: LogLevel = Field(default=LogLevel.INFO)

    @field_validator("linkpath")
    @classmethod
    def validate_linkpath(cls, value: str) -> str:
        return normalize_linkpath(value)

    @field_validator("health_path", "metrics_path")
    @classmethod
    def validate_ops_path(cls, value: str) -> str:
        if not value.startswith("/"):
            raise ValueError("operational paths must start with '/'")
        return value

    @model_validator(mode="after")
    def validate_token_bounds(self) -> "MazeConfig":
        """Validate min_tokens <= max_tokens."""
        if self.min_tokens > self.max_tokens:
            raise ValueError(
                f"min_tokens ({self.min_tokens}) must be <= "
                f"max_tokens ({self.max_tokens})"
            )
        return self

    def assembly(self) -> AssemblyConfig:
        return AssemblyConfig(
            paragraph_probability=self.paragraph_probability,
            link_probability=self.link_probability,
            linkpath=self.linkpath,
            decoy_path=self.decoy_path,
            decoy_probability=self.decoy_probability,
        )


class TransformConfig(BaseModel):
    """Mirror transformer configuration."""

    input_dir: str = Field(min_length=1)
    output_dir: str = Field(min_length=1)
    replace_percent: float = Field(default=0.20, ge=0.0, le=1.0)
    train_dir: Optional[str] = None
    scramble_images: float = Field(default=0.40, ge=0.0, le=1.0)
    embed_linkmaze: bool = Field(default=False)
    linkmaze_path: str = Field(default=DEFAULT_LINKPATH)
    link_probability: float = Field(default=DEFAULT_LINK_PROBABILITY, ge=0.0, le=1.0)
    seed: Optional[str] = None
    log_level: LogLevel = Field(default=LogLevel.INFO)

    @field_validator("linkmaze_path")
    @classmethod
    def validate_linkmaze_path(cls, value: str) -> str:
        return normalize_linkpath(value)

    @property
    def keep_probability(self) -> float:
        return 1.0 - self.replace_percent

    @property
    def training_root(self) -> str:
        return self.train_dir or self.input_dir
