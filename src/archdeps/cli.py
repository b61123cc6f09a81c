"""Command-line interface for archdeps."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from archdeps.config import load_settings
from archdeps.errors import ArchDepsError
from archdeps.export import export_all, write_relations
from archdeps.extractors import FRONTENDS
from archdeps.pipeline import analyze

logger = logging.getLogger("archdeps")


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {value!r}") from None
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="archdeps",
        description="Whole-project class dependency model for Java codebases, exported as relation lines.",
    )
    parser.add_argument(
        "project_dir",
        type=Path,
        help="Path to the project to analyse",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Output file for relation lines (default: PROJECT_DIR/archdeps.csv)",
    )
    parser.add_argument(
        "--filter-noise",
        action="store_true",
        default=None,
        help="Drop edges to primitives, boxed wrappers, and other common types",
    )
    parser.add_argument(
        "--frontend",
        choices=FRONTENDS,
        default=None,
        help="Java front-end to parse sources with (default: from config, else javalang)",
    )
    parser.add_argument(
        "--workers",
        type=_positive_int,
        default=None,
        help="Number of extraction worker threads",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose (debug) output",
    )

    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.WARNING, format="%(message)s")
    if args.verbose:
        logger.setLevel(logging.DEBUG)

    project_dir = args.project_dir.resolve()
    try:
        settings = load_settings(project_dir)
        if args.filter_noise:
            settings.filter_noise = True
        if args.frontend:
            settings.frontend = args.frontend
        if args.workers is not None:
            settings.max_workers = args.workers

        store = analyze(project_dir, settings=settings)
    except ArchDepsError as e:
        logger.error("%s", e)
        sys.exit(1)

    lines = export_all(store)
    out_path = args.output or (project_dir / "archdeps.csv")
    write_relations(lines, out_path)
    logger.info("Generated %s (%d classes, %d relations)", out_path, len(store), len(lines))
