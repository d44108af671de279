"""Build a decoy mirror: ``python -m src.mirror -i site/ -o decoy/``."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from src.shared.config_validator import ConfigLoader, resolve_log_level
from src.shared.errors import ConfigError, TrainingError

from .transformer import BatchTransformer

logger = logging.getLogger("src.mirror")

EXIT_TRAINING_ERROR = 1
EXIT_CONFIG_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m src.mirror",
        description="Copy a static site, replacing its text with generated content.",
    )
    parser.add_argument("-i", "--input", dest="input_dir", required=True)
    parser.add_argument("-o", "--output", dest="output_dir", required=True)
    parser.add_argument(
        "-p",
        "--percent",
        dest="replace_percent",
        type=float,
        help="Fraction of words and text nodes to replace (default 0.20)",
    )
    parser.add_argument(
        "-t",
        "--train",
        dest="train_dir",
        help="Training corpus directory (default: the input directory)",
    )
    parser.add_argument(
        "--scramble-images",
        type=float,
        help="Odds of swapping an image for another from the site (default 0.40)",
    )
    parser.add_argument(
        "--embed-linkmaze",
        action="store_true",
        default=None,
        help="Insert links into the maze in rewritten HTML",
    )
    parser.add_argument("--linkmaze-path", help="Maze link prefix (default /maze)")
    parser.add_argument("--link-probability", type=float)
    parser.add_argument("--seed", help="Seed for a reproducible run")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=args.log_level or "INFO",
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    try:
        config = ConfigLoader().load_transform_config(vars(args))
    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        return EXIT_CONFIG_ERROR
    logging.getLogger().setLevel(resolve_log_level(config.log_level))

    try:
        report = BatchTransformer(config).run()
    except TrainingError as e:
        logger.error("Training failed: %s", e)
        return EXIT_TRAINING_ERROR

    logger.info(
        "Wrote %d files (%d html, %d text, %d images scrambled); %d skipped",
        report.files_written,
        report.html_files,
        report.text_files,
        report.images_scrambled,
        len(report.skipped),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
