"""Command-line entry point for the trading page analyzer."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Iterable, Sequence

from .classifier import classify
from .config import DEFAULT_TARGET_URL, AnalysisConfig
from .capture import analyze_url
from .palette import DEFAULT_TOP_K
from .snapshot import snapshot_from_html
from .writer import CHART_COMPONENTS_FILE, TRADING_INTERFACE_FILE, ResultWriter

logger = logging.getLogger("trade_recon.cli")


def _ensure_command_prefix(argv: Sequence[str], commands: Iterable[str]) -> Sequence[str]:
    if not argv:
        return ("analyze",)
    first = argv[0]
    if first in commands or first in ("-h", "--help"):
        return argv
    return ("analyze", *argv)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )


def _add_analyze_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "url",
        nargs="?",
        default=DEFAULT_TARGET_URL,
        help=f"Trading page to analyse (default: {DEFAULT_TARGET_URL})",
    )
    parser.add_argument(
        "--output",
        default="analysis_results",
        type=Path,
        help="Directory where screenshots and JSON results should be written",
    )
    parser.add_argument(
        "--wait",
        type=float,
        default=5.0,
        help="Seconds to wait after network idle before measuring the page",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=60.0,
        help="Navigation timeout in seconds",
    )
    parser.add_argument(
        "--top-colors",
        type=int,
        default=DEFAULT_TOP_K,
        help="Number of background colours to keep in the palette summary",
    )
    parser.add_argument(
        "--headful",
        action="store_true",
        help="Show the browser window instead of running headless",
    )
    parser.add_argument(
        "--linger",
        type=float,
        default=0.0,
        help="Seconds to keep the browser open after the analysis",
    )
    parser.add_argument(
        "--max-text-chars",
        type=int,
        default=None,
        help="Cap element text in the written JSON (matching always uses the full text)",
    )
    parser.add_argument(
        "--no-websockets",
        action="store_true",
        help="Do not record WebSocket handshakes alongside HTTP requests",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )


def _add_inspect_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("path", type=Path, help="Saved HTML page to classify")
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write JSON results to this directory instead of STDOUT",
    )
    parser.add_argument(
        "--top-colors",
        type=int,
        default=DEFAULT_TOP_K,
        help="Number of background colours to keep in the palette summary",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Inventory the UI of a trading web page and record its API traffic.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze_parser = subparsers.add_parser(
        "analyze", help="Open the page in Chromium, classify its UI and take screenshots"
    )
    _add_analyze_arguments(analyze_parser)

    inspect_parser = subparsers.add_parser(
        "inspect", help="Classify a saved HTML page without a browser"
    )
    _add_inspect_arguments(inspect_parser)

    argv = list(sys.argv[1:] if argv is None else argv)
    argv = list(_ensure_command_prefix(argv, subparsers.choices.keys()))
    return parser.parse_args(argv)


def _run_analyze(args: argparse.Namespace) -> int:
    _configure_logging(args.verbose)
    config = AnalysisConfig(
        output_root=Path(args.output).resolve(),
        target_url=args.url,
        settle_delay=args.wait,
        navigation_timeout=args.timeout,
        headless=not args.headful,
        linger=args.linger,
        palette_top_k=args.top_colors,
        max_text_chars=args.max_text_chars,
        capture_websockets=not args.no_websockets,
    )
    logger.info("Starting analysis of %s", config.target_url)
    report = asyncio.run(analyze_url(config))
    if not report.ok:
        logger.error("Analysis failed: %s (see %s)", report.error, report.output_dir)
        return 1
    logger.info("Analysis complete. Results saved to %s", report.output_dir)
    return 0


def _run_inspect(args: argparse.Namespace) -> int:
    _configure_logging(args.verbose)
    source = Path(args.path).expanduser()
    if not source.is_file():
        logger.error("HTML file does not exist: %s", source)
        return 2
    html = source.read_text(encoding="utf-8", errors="replace")
    snapshot = snapshot_from_html(html, url=source.resolve().as_uri())
    result = classify(snapshot, args.top_colors)

    if args.output:
        writer = ResultWriter(Path(args.output).resolve())
        writer.write_json(CHART_COMPONENTS_FILE, result.chart_components())
        writer.write_json(TRADING_INTERFACE_FILE, result.trading_interface())
        logger.info("Saved classification to %s", writer.output_dir)
        return 0

    payload = {
        "chart_components": result.chart_components(),
        "trading_interface": result.trading_interface(),
    }
    sys.stdout.write(json.dumps(payload, ensure_ascii=False, indent=2) + "\n")
    sys.stdout.flush()
    return 0


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    if args.command == "analyze":
        exit_code = _run_analyze(args)
    else:
        exit_code = _run_inspect(args)
    if exit_code:
        raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
