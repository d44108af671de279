"""Run the maze server: ``python -m src.tarpit --train <corpus>``."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

import uvicorn

from src.markov.chain import train
from src.shared.config_schema import DEFAULT_LINK_PROBABILITY, DEFAULT_PARAGRAPH_PROBABILITY
from src.shared.config_validator import ConfigLoader
from src.shared.errors import ConfigError, TrainingError

from .maze_api import ServingContext, create_maze_app

logger = logging.getLogger("src.tarpit")

EXIT_TRAINING_ERROR = 1
EXIT_CONFIG_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m src.tarpit",
        description="Serve an endless maze of generated pages to crawlers.",
    )
    parser.add_argument("-t", "--train", dest="train_dir", help="Training corpus directory")
    parser.add_argument("--linkpath", help="Path prefix for generated maze links (default /maze)")
    parser.add_argument("--listen-addr", help="Address to bind (default 0.0.0.0)")
    parser.add_argument("--listen-port", type=int, help="Port to bind (default 3005)")
    parser.add_argument("--min-tokens", type=int, help="Minimum tokens per page (default 250)")
    parser.add_argument("--max-tokens", type=int, help="Maximum tokens per page (default 12500)")
    parser.add_argument(
        "--paragraph-probability",
        type=float,
        help=f"Per-token paragraph break odds (default {DEFAULT_PARAGRAPH_PROBABILITY:.4f})",
    )
    parser.add_argument(
        "--link-probability",
        type=float,
        help=f"Per-token link injection odds (default {DEFAULT_LINK_PROBABILITY:.4f})",
    )
    parser.add_argument("--decoy-path", help="Resource linked at most once per page")
    parser.add_argument(
        "--decoy-probability",
        type=float,
        help="Odds that an injected link points at the decoy resource",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=(args.log_level or "INFO"),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        config = ConfigLoader().load_maze_config(vars(args))
    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        return EXIT_CONFIG_ERROR

    try:
        model = train(config.train_dir)
    except TrainingError as e:
        logger.error("Training failed: %s", e)
        return EXIT_TRAINING_ERROR

    context = ServingContext.from_config(model, config)
    app = create_maze_app(context, config)

    logger.info("--- Markov Maze Starting ---")
    logger.info("Link path: %s", config.linkpath or "/")
    logger.info("Tokens per page: %d - %d", config.min_tokens, config.max_tokens)
    if config.decoy_path:
        logger.info(
            "Decoy resource: %s (probability %.3f)",
            config.decoy_path,
            config.decoy_probability,
        )
    logger.info("Listening on %s:%d", config.listen_addr, config.listen_port)

    uvicorn.run(
        app,
        host=config.listen_addr,
        port=config.listen_port,
        log_level=config.log_level.value.lower(),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
