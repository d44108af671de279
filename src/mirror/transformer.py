# src/mirror/transformer.py
# Mirrors a static site into an output tree with its text swapped for Markov output.

from __future__ import annotations

import logging
import os
import random
import re
import shutil
from dataclasses import dataclass, field
from typing import List, Optional

from src.markov.chain import ChainModel, train
from src.markov.walk import MarkovWalker
from src.shared.config_schema import TransformConfig
from src.shared.metrics import record_mirror_file

from .html_rewriter import rewrite_html
from .policy import RewritePolicy

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = frozenset(
    {".png", ".gif", ".svg", ".jpg", ".jpeg", ".webp", ".avif"}
)
_LINE_BREAK = re.compile(r"\r\n|\r|\n")


def file_kind(path: str) -> str:
    extension = os.path.splitext(path)[1].lower()
    if extension == ".html":
        return "html"
    if extension == ".txt":
        return "text"
    if extension in IMAGE_EXTENSIONS:
        return "image"
    return "other"


def collect_image_pool(root: str) -> List[str]:
    """All images under ``root``; the pool is fixed for the whole run."""
    images = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        for name in sorted(filenames):
            path = os.path.join(dirpath, name)
            if file_kind(path) == "image":
                images.append(path)
    return images


@dataclass
class TransformReport:
    directories: int = 0
    html_files: int = 0
    text_files: int = 0
    images_copied: int = 0
    images_scrambled: int = 0
    copied_files: int = 0
    skipped: List[str] = field(default_factory=list)

    @property
    def files_written(self) -> int:
        return (
            self.html_files
            + self.text_files
            + self.images_copied
            + self.images_scrambled
            + self.copied_files
        )


class BatchTransformer:
    """Walks ``config.input_dir`` and writes a decoy copy to ``config.output_dir``.

    A failure on one entry is logged and recorded in the report; only a
    training failure aborts the run.
    """

    def __init__(
        self,
        config: TransformConfig,
        model: Optional[ChainModel] = None,
        rng: Optional[random.Random] = None,
    ):
        self.config = config
        self.model = model
        if rng is None:
            rng = random.Random(config.seed) if config.seed is not None else random.Random()
        self.rng = rng
        self.policy = RewritePolicy(
            keep_probability=config.keep_probability,
            embed_links=config.embed_linkmaze,
            link_probability=config.link_probability,
            linkpath=config.linkmaze_path,
        )
        self.images: List[str] = []
        self._walker: Optional[MarkovWalker] = None

    def run(self) -> TransformReport:
        """Transform the whole tree.

        Raises:
            TrainingError: If no model was supplied and training fails.
        """
        if self.model is None:
            self.model = train(self.config.training_root)
        self._walker = MarkovWalker(self.model, self.rng)
        self.images = collect_image_pool(self.config.input_dir)
        report = TransformReport()

        input_root = self.config.input_dir
        output_root = self.config.output_dir
        logger.info(
            "Transforming %s -> %s (replace %.0f%%, %d images in pool)",
            input_root,
            output_root,
            self.config.replace_percent * 100,
            len(self.images),
        )

        def _on_walk_error(error: OSError) -> None:
            logger.warning("Skipping unreadable entry %s: %s", error.filename, error)
            report.skipped.append(str(error.filename))

        for dirpath, dirnames, filenames in os.walk(input_root, onerror=_on_walk_error):
            dirnames.sort()
            relative = os.path.relpath(dirpath, input_root)
            output_dir = os.path.normpath(os.path.join(output_root, relative))
            try:
                if not os.path.isdir(output_dir):
                    os.makedirs(output_dir)
                    report.directories += 1
            except OSError as e:
                logger.warning("Cannot create output directory %s: %s", output_dir, e)
                report.skipped.append(dirpath)
                dirnames[:] = []
                continue

            for name in sorted(filenames):
                source = os.path.join(dirpath, name)
                destination = os.path.join(output_dir, name)
                kind = file_kind(source)
                try:
                    self._transform_file(source, destination, kind, report)
                except (OSError, UnicodeDecodeError) as e:
                    logger.warning("Skipping %s: %s", source, e)
                    report.skipped.append(source)
                    record_mirror_file(kind, "skipped")

        logger.info(
            "Transform finished: %d files written, %d skipped",
            report.files_written,
            len(report.skipped),
        )
        return report

    def _transform_file(
        self, source: str, destination: str, kind: str, report: TransformReport
    ) -> None:
        if kind == "html":
            self._write_html(source, destination)
            report.html_files += 1
            outcome = "rewritten"
        elif kind == "text":
            self._write_text(source, destination)
            report.text_files += 1
            outcome = "rewritten"
        elif kind == "image":
            if self._copy_image(source, destination):
                report.images_scrambled += 1
                outcome = "scrambled"
            else:
                report.images_copied += 1
                outcome = "copied"
        else:
            shutil.copyfile(source, destination)
            report.copied_files += 1
            outcome = "copied"
        record_mirror_file(kind, outcome)

    def _write_html(self, source: str, destination: str) -> None:
        with open(source, "r", encoding="utf-8") as f:
            markup = f.read()
        rewritten, _ = rewrite_html(markup, self.policy, self._walker, self.rng)
        with open(destination, "w", encoding="utf-8") as f:
            f.write(rewritten)

    def _write_text(self, source: str, destination: str) -> None:
        with open(source, "r", encoding="utf-8", newline="") as f:
            contents = f.read()
        # Only real line endings split lines; form feeds and the like stay put.
        lines = _LINE_BREAK.split(contents)
        output = "\n".join(
            self.policy.rewrite_line(line, self._walker, self.rng) for line in lines
        )
        with open(destination, "w", encoding="utf-8", newline="") as f:
            f.write(output)

    def _copy_image(self, source: str, destination: str) -> bool:
        """Copy an image, or a random one from the pool; True if scrambled."""
        scramble = self.config.scramble_images
        if scramble > 0.0 and self.images and self.rng.random() < scramble:
            replacement = self.rng.choice(self.images)
            shutil.copyfile(replacement, destination)
            logger.debug("Scrambled image %s with %s", source, replacement)
            return True
        shutil.copyfile(source, destination)
        return False


def run_transform(
    config: TransformConfig, rng: Optional[random.Random] = None
) -> TransformReport:
    return BatchTransformer(config, rng=rng).run()
