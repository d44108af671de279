"""Configuration loading for the maze server and the mirror transformer."""

import logging
import os
from typing import Any, Dict, List, Mapping, Optional

from pydantic import ValidationError

from .config_schema import LogLevel, MazeConfig, TransformConfig
from .errors import ConfigError

logger = logging.getLogger(__name__)

# Environment variable -> MazeConfig field
MAZE_ENV_FIELDS = {
    "MAZE_TRAIN_DIR": "train_dir",
    "MAZE_LISTEN_ADDR": "listen_addr",
    "MAZE_LISTEN_PORT": "listen_port",
    "MAZE_LINKPATH": "linkpath",
    "MAZE_MIN_TOKENS": "min_tokens",
    "MAZE_MAX_TOKENS": "max_tokens",
    "MAZE_PARAGRAPH_PROBABILITY": "paragraph_probability",
    "MAZE_LINK_PROBABILITY": "link_probability",
    "MAZE_DECOY_PATH": "decoy_path",
    "MAZE_DECOY_PROBABILITY": "decoy_probability",
    "MAZE_HEALTH_PATH": "health_path",
    "MAZE_METRICS_PATH": "metrics_path",
    "LOG_LEVEL": "log_level",
}


def _format_validation_error(exc: ValidationError) -> List[str]:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        message = error.get("msg", "invalid value")
        messages.append(f"{location}: {message}" if location else message)
    return messages


class ConfigLoader:
    """Load and validate configuration from environment variables and overrides."""

    def __init__(self, env: Optional[Mapping[str, str]] = None):
        """
        Initialize config loader.

        Args:
            env: Optional mapping of environment variables.
                If None, uses os.environ.
        """
        self.env = dict(os.environ) if env is None else dict(env)

    def _from_env(self) -> Dict[str, Any]:
        values: Dict[str, Any] = {}
        for env_name, field_name in MAZE_ENV_FIELDS.items():
            raw = self.env.get(env_name)
            if raw is None or raw == "":
                continue
            values[field_name] = raw.upper() if field_name == "log_level" else raw
        return values

    def load_maze_config(
        self, overrides: Optional[Mapping[str, Any]] = None
    ) -> MazeConfig:
        """
        Build a MazeConfig from the environment, letting non-None overrides win.

        Raises:
            ConfigError: If any value is invalid or min_tokens > max_tokens.
        """
        values = self._from_env()
        values.update({k: v for k, v in (overrides or {}).items() if v is not None})
        try:
            config = MazeConfig(**values)
        except ValidationError as exc:
            errors = _format_validation_error(exc)
            raise ConfigError(
                "Invalid maze configuration: " + "; ".join(errors), errors
            ) from exc
        logger.debug("Loaded maze configuration: %s", config.model_dump())
        return config

    def load_transform_config(
        self, overrides: Optional[Mapping[str, Any]] = None
    ) -> TransformConfig:
        """
        Build a TransformConfig and check the input directory exists.

        Raises:
            ConfigError: On invalid values or a missing input directory.
        """
        values = {k: v for k, v in (overrides or {}).items() if v is not None}
        if "log_level" not in values and self.env.get("LOG_LEVEL"):
            values["log_level"] = self.env["LOG_LEVEL"].upper()
        try:
            config = TransformConfig(**values)
        except ValidationError as exc:
            errors = _format_validation_error(exc)
            raise ConfigError(
                "Invalid transform configuration: " + "; ".join(errors), errors
            ) from exc

        if not os.path.isdir(config.input_dir):
            raise ConfigError(f"Input directory {config.input_dir!r} does not exist")
        input_root = os.path.realpath(config.input_dir)
        output_root = os.path.realpath(config.output_dir)
        if output_root == input_root or output_root.startswith(input_root + os.sep):
            raise ConfigError(
                f"Output directory {config.output_dir!r} must not be inside "
                f"the input directory {config.input_dir!r}"
            )
        return config


def resolve_log_level(level: LogLevel | str) -> int:
    name = level.value if isinstance(level, LogLevel) else str(level).upper()
    return getattr(logging, name, logging.INFO)
