"""Persistence of analysis results to an output directory."""

from __future__ import annotations

import json
import logging
import traceback
from pathlib import Path
from typing import Any, Iterable, Optional, Set
from urllib.parse import urlparse

from .config import AnalysisConfig
from .models import ClassificationResult, NetworkRecord
from .utils import slugify

logger = logging.getLogger("trade_recon")

OVERVIEW_SCREENSHOT = "platform_overview.png"
CHART_SCREENSHOT = "chart_component.png"
CHART_COMPONENTS_FILE = "chart_components.json"
TRADING_INTERFACE_FILE = "trading_interface.json"
API_REQUESTS_FILE = "api_requests.json"
SOCKET_GLOBALS_FILE = "websocket_connections.json"
ERROR_FILE = "error.txt"


def build_output_dir(config: AnalysisConfig) -> Path:
    """Create an output directory named after the target host."""
    parsed = urlparse(config.target_url)
    host = slugify(parsed.netloc or "site", fallback="site")
    output_dir = config.output_root / host
    output_dir.mkdir(parents=True, exist_ok=True)
    return output_dir


class ResultWriter:
    """Writes every artifact of one run into a single directory."""

    def __init__(self, output_dir: Path) -> None:
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self._button_names: Set[str] = set()

    def path_for(self, filename: str) -> Path:
        return self.output_dir / filename

    def button_screenshot_path(self, text: str) -> Path:
        """Return a unique screenshot path derived from a button's text."""
        slug = slugify(text, fallback="button")[:60]
        name = slug
        suffix = 2
        while name in self._button_names:
            name = f"{slug}-{suffix}"
            suffix += 1
        self._button_names.add(name)
        return self.path_for(f"action_button_{name}.png")

    def write_json(self, filename: str, data: Any) -> Path:
        path = self.path_for(filename)
        path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
        logger.debug("Saved %s", path)
        return path

    def write_results(
        self,
        classification: ClassificationResult,
        requests: Iterable[NetworkRecord],
        socket_globals: Iterable[str],
        text_limit: Optional[int] = None,
    ) -> None:
        """Persist the classification, captured traffic and socket globals."""
        self.write_json(
            CHART_COMPONENTS_FILE, classification.chart_components(text_limit)
        )
        self.write_json(
            TRADING_INTERFACE_FILE, classification.trading_interface(text_limit)
        )
        self.write_json(API_REQUESTS_FILE, [record.to_dict() for record in requests])
        self.write_json(SOCKET_GLOBALS_FILE, list(socket_globals))
        logger.info("Saved analysis results to %s", self.output_dir)

    def write_error(self, exc: BaseException) -> Path:
        """Persist a diagnostic record with the message and traceback."""
        trace = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        path = self.path_for(ERROR_FILE)
        path.write_text(f"Error during analysis: {exc}\n{trace}", encoding="utf-8")
        logger.info("Saved diagnostic record to %s", path)
        return path
