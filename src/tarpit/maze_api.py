# src/tarpit/maze_api.py
"""HTTP surface of the maze: every GET path returns a freshly generated page."""

from __future__ import annotations

import logging
import random
import re
from typing import Callable, Optional

from fastapi import FastAPI
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, Field, field_validator

from src.markov.chain import ChainModel
from src.markov.walk import sample
from src.shared.config_schema import AssemblyConfig, MazeConfig
from src.shared.errors import ConfigError
from src.shared.metrics import record_page
from src.shared.middleware import create_app
from src.shared.observability import (
    HealthCheckResult,
    ObservabilitySettings,
    register_health_check,
)

from .assembler import ContentAssembler

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 2048


class MazePath(BaseModel):
    """Sanitizes the requested path before it becomes a page title."""

    path: str = Field(default="")

    @field_validator("path")
    @classmethod
    def sanitize_path(cls, v: str) -> str:
        # Remove null bytes and control characters, then cap the title length
        return re.sub(r"[\x00-\x1f\x7f]", "", v)[:MAX_TITLE_LENGTH]


class ServingContext:
    """Shares one trained model with every request handler.

    The model and assembler are read-only; each call to ``render_page`` gets
    its own randomness source and walk state, so no lock is needed.
    """

    def __init__(
        self,
        model: ChainModel,
        assembly: AssemblyConfig,
        min_tokens: int,
        max_tokens: int,
        rng_factory: Callable[[], random.Random] = random.Random,
    ):
        if min_tokens < 0 or min_tokens > max_tokens:
            raise ConfigError(
                f"min_tokens ({min_tokens}) must be between 0 and "
                f"max_tokens ({max_tokens})"
            )
        self.model = model
        self.min_tokens = min_tokens
        self.max_tokens = max_tokens
        self.assembler = ContentAssembler(assembly)
        self._rng_factory = rng_factory

    @classmethod
    def from_config(
        cls,
        model: ChainModel,
        config: MazeConfig,
        rng_factory: Callable[[], random.Random] = random.Random,
    ) -> "ServingContext":
        return cls(
            model,
            config.assembly(),
            config.min_tokens,
            config.max_tokens,
            rng_factory=rng_factory,
        )

    def token_count(self, rng: random.Random) -> int:
        """Draw a page length from [min_tokens, max_tokens)."""
        if self.min_tokens == self.max_tokens:
            return self.min_tokens
        return rng.randrange(self.min_tokens, self.max_tokens)

    def render_page(self, title: str, rng: Optional[random.Random] = None) -> str:
        rng = rng if rng is not None else self._rng_factory()
        n = self.token_count(rng)
        tokens = sample(self.model, n, rng)
        page = self.assembler.assemble(tokens, title, rng)
        record_page(n)
        logger.debug("Generated maze page '%s' with %d tokens", title, n)
        return page


def create_maze_app(
    context: ServingContext, config: Optional[MazeConfig] = None
) -> FastAPI:
    """Build the FastAPI app serving ``context``.

    Operational routes are registered first so they win over the catch-all.
    """
    settings = ObservabilitySettings(service_name="markov-maze")
    if config is not None:
        settings.health_path = config.health_path
        settings.metrics_path = config.metrics_path
        settings.log_level = config.log_level.value
    app = create_app(observability_settings=settings, title="markov-maze")
    app.state.maze = context

    @register_health_check(app, "markov_model", critical=True)
    def _model_health() -> HealthCheckResult:
        return HealthCheckResult.healthy(
            {
                "keys": len(context.model),
                "transitions": context.model.transition_count,
                "min_tokens": context.min_tokens,
                "max_tokens": context.max_tokens,
            }
        )

    # Plain def: Starlette runs each page in its worker thread pool.
    @app.get("/{path:path}", response_class=HTMLResponse)
    def maze_page(path: str = "") -> HTMLResponse:
        title = MazePath(path=path).path
        page = context.render_page(title or "index")
        return HTMLResponse(content=page, status_code=200)

    return app
