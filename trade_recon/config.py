"""Configuration objects and constants for the analyzer."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

DEFAULT_TARGET_URL = "https://qxbroker.com/en/demo-trade"
DEFAULT_INTEREST_SEGMENTS: Tuple[str, ...] = ("/api/", "/ws/")


@dataclass
class AnalysisConfig:
    """Top-level settings that control one analysis session."""

    output_root: Path
    target_url: str = DEFAULT_TARGET_URL
    settle_delay: float = 5.0
    navigation_timeout: float = 60.0
    headless: bool = True
    viewport_width: int = 1440
    viewport_height: int = 900
    linger: float = 0.0
    palette_top_k: int = 10
    max_text_chars: Optional[int] = None
    interest_segments: Tuple[str, ...] = DEFAULT_INTEREST_SEGMENTS
    capture_websockets: bool = True
