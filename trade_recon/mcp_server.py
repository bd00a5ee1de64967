"""MCP server exposing the trading page analysis as a tool."""

from __future__ import annotations

import json
import logging
import tempfile
from pathlib import Path

from mcp.server.fastmcp import FastMCP

from .capture import analyze_url
from .config import DEFAULT_TARGET_URL, AnalysisConfig

logger = logging.getLogger("trade_recon.mcp")
logger.setLevel(logging.ERROR)

mcp = FastMCP(name="trade-recon")


@mcp.tool()
async def analyze(url: str = DEFAULT_TARGET_URL) -> str:
    """Analyse a trading page in headless Chromium and return the results as JSON."""

    with tempfile.TemporaryDirectory(prefix="trade-recon-") as tmp_dir:
        config = AnalysisConfig(output_root=Path(tmp_dir), target_url=url)
        report = await analyze_url(config)
        if not report.ok:
            raise RuntimeError(f"Failed to analyse {url}: {report.error}")
        summary = report.summary()
    # Screenshots live in the temporary directory and are gone by now.
    summary.pop("screenshots", None)
    summary.pop("output_dir", None)
    return json.dumps(summary, ensure_ascii=False, indent=2)


def main() -> None:
    """Entry point for running the MCP server."""
    logging.basicConfig(level=logging.ERROR)
    mcp.run()


if __name__ == "__main__":
    main()
