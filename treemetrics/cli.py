from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from treemetrics.core.config import COMPLEXITY_RULE, Config
from treemetrics.core.engine import AnalysisEngine
from treemetrics.core.errors import ConfigError
from treemetrics.reporting import format_cpd_json, format_json, format_sarif, format_text

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="treemetrics",
        description="Complexity and copy-paste tokens for JavaScript / TypeScript",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    scan_parser = subparsers.add_parser("scan", help="Report functions that are too complex")
    _add_common_arguments(scan_parser)
    scan_parser.add_argument("--threshold", type=int, help="Maximum authorized complexity (overrides config)")
    scan_parser.add_argument(
        "--format",
        choices=["text", "json", "sarif"],
        help="Output format (overrides config)",
    )

    cpd_parser = subparsers.add_parser("cpd", help="Dump normalized CPD token streams as JSON")
    _add_common_arguments(cpd_parser)

    args = parser.parse_args(argv)

    try:
        config = Config.load(args.config_path)
        if getattr(args, "threshold", None) is not None:
            config = config.with_threshold(COMPLEXITY_RULE, args.threshold)
    except (ConfigError, FileNotFoundError) as exc:
        print(f"treemetrics: {exc}", file=sys.stderr)
        return 1
    _configure_logging(config, args.verbose)

    if args.command == "scan":
        engine = AnalysisEngine(Config.from_dict({**config.data, "cpd": {"enabled": False}}))
        report = engine.analyze(args.path)
        skipped = [result.path for result in report.skipped]
        fmt = args.format or config.reporting().get("format", "text")
        if fmt == "json":
            output = format_json(report.issues, skipped)
        elif fmt == "sarif":
            output = format_sarif(report.issues)
        else:
            output = format_text(report.issues, skipped)
        _write(output, args.output)
        if report.issues and config.reporting().get("fail_on_issues", True):
            return 2
        return 0

    if args.command == "cpd":
        engine = AnalysisEngine(Config.from_dict({**config.data, "cpd": {"enabled": True}}))
        report = engine.analyze(args.path)
        _write(format_cpd_json(report.cpd_tokens()) + "\n", args.output)
        return 0
    return 0


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("path", nargs="?", default=".", help="File or directory to analyze")
    parser.add_argument("--config", dest="config_path", help="Path to YAML/JSON config file")
    parser.add_argument("--output", help="Write output to file instead of stdout")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")


def _configure_logging(config: Config, verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, config.log_level(), logging.WARNING)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _write(output: str, destination: str | None) -> None:
    if destination:
        Path(destination).write_text(output, encoding="utf-8")
        logger.info("Wrote report to %s", destination)
    else:
        print(output, end="")
