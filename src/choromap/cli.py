"""CLI entrypoint for choromap."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Sequence

from .config import AppConfig, load_config
from .loader import build_session, fetch_dataset
from .render import format_render_lines, run_render_legend, run_render_map
from .util import ensure_directories, setup_logging

LOGGER = logging.getLogger("choromap.cli")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="choromap",
        description="Choropleth map renderer with a matching color legend.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_common(p: argparse.ArgumentParser) -> None:
        p.add_argument("--config", default="config.yaml", help="Path to YAML config.")
        p.add_argument("--verbose", action="store_true", help="Enable debug logs.")

    render_p = subparsers.add_parser("render", help="Load the dataset and render the map.")
    add_common(render_p)
    render_p.add_argument("--url", default=None, help="Dataset URL overriding the config.")
    render_p.add_argument("--output", default=None, help="Map image path overriding the config.")

    legend_p = subparsers.add_parser("legend", help="Render only the color legend.")
    add_common(legend_p)
    legend_p.add_argument("--output", default=None, help="Legend image path overriding the config.")

    check_p = subparsers.add_parser("check", help="Fetch and validate the dataset without rendering.")
    add_common(check_p)
    check_p.add_argument("--url", default=None, help="Dataset URL overriding the config.")

    return parser


def _load_and_setup(args: argparse.Namespace) -> AppConfig:
    cfg = load_config(args.config)
    setup_logging(cfg.output.logs_dir / "choromap.log", verbose=args.verbose)
    ensure_directories(cfg.output.directories)
    return cfg


def _run_render(cfg: AppConfig, *, url: str | None, output: str | None) -> int:
    report = run_render_map(
        cfg,
        url=url,
        output_path=Path(output).resolve() if output else None,
    )
    for line in format_render_lines(report):
        LOGGER.info(line)
    return 0 if report.ok else 1


def _run_legend(cfg: AppConfig, *, output: str | None) -> int:
    path = run_render_legend(cfg, output_path=Path(output).resolve() if output else None)
    LOGGER.info("Legend written to %s", path)
    return 0


def _run_check(cfg: AppConfig, *, url: str | None) -> int:
    dataset_url = url or cfg.dataset.url
    result = fetch_dataset(
        dataset_url,
        session=build_session(cfg.dataset.user_agent),
        timeout_s=cfg.dataset.request_timeout_s,
    )
    if result.collection is None:
        LOGGER.error("Dataset check failed for %s: %s", dataset_url, result.error)
        return 1
    features = tuple(result.collection)
    with_data = sum(1 for feature in features if feature.has_value)
    LOGGER.info(
        "Dataset OK: %d features, %d with numeric values, %d without.",
        len(features),
        with_data,
        len(features) - with_data,
    )
    return 0


def _dispatch(args: argparse.Namespace) -> int:
    cfg = _load_and_setup(args)
    command = str(args.command)
    if command == "render":
        return _run_render(cfg, url=args.url, output=args.output)
    if command == "legend":
        return _run_legend(cfg, output=args.output)
    if command == "check":
        return _run_check(cfg, url=args.url)
    raise ValueError(f"Unknown command: {command}")


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    try:
        return _dispatch(args)
    except (FileNotFoundError, ValueError) as exc:
        LOGGER.error("Configuration error: %s", exc)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
