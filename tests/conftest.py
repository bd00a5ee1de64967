"""Shared fakes for Playwright pages used across the test suite."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import pytest

from trade_recon.config import AnalysisConfig
from trade_recon.snapshot import SNAPSHOT_SCRIPT
from trade_recon.writer import ResultWriter


class FakeRequest:
    def __init__(self, url: str, method: str = "GET", headers=None, post_data=None, broken=False):
        self.url = url
        self.method = method
        self.headers = headers or {}
        self._post_data = post_data
        self._broken = broken

    @property
    def post_data(self) -> Optional[str]:
        if self._broken:
            raise UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte")
        return self._post_data


class FakeWebSocket:
    def __init__(self, url: str):
        self.url = url


class FakeElementHandle:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.screenshots: List[str] = []

    async def screenshot(self, path: str) -> None:
        if self.fail:
            raise RuntimeError("Element is not attached to the DOM")
        self.screenshots.append(path)
        Path(path).write_bytes(b"")


class FakePage:
    """Minimal stand-in for ``playwright.async_api.Page``."""

    def __init__(self, payload: Optional[Dict[str, Any]] = None):
        self.payload = payload or {"url": "", "elements": [], "canvases": []}
        self.listeners: Dict[str, List[Callable]] = {}
        self.events_on_goto: List[tuple] = []
        self.goto_error: Optional[BaseException] = None
        self.listener_count_at_goto: Optional[int] = None
        self.goto_calls: List[Dict[str, Any]] = []
        self.waits: List[int] = []
        self.screenshot_calls: List[Dict[str, Any]] = []
        self.handles: Dict[str, FakeElementHandle] = {}
        self.socket_globals: List[str] = ["io_socket"]
        self.evaluate_calls: List[tuple] = []
        self.clip_error: Optional[BaseException] = None

    def on(self, event: str, listener: Callable) -> None:
        self.listeners.setdefault(event, []).append(listener)

    def remove_listener(self, event: str, listener: Callable) -> None:
        self.listeners[event].remove(listener)

    def emit(self, event: str, payload: Any) -> None:
        for listener in list(self.listeners.get(event, [])):
            listener(payload)

    async def goto(self, url: str, **kwargs: Any) -> None:
        self.listener_count_at_goto = sum(len(v) for v in self.listeners.values())
        self.goto_calls.append({"url": url, **kwargs})
        for event, payload in self.events_on_goto:
            self.emit(event, payload)
        if self.goto_error is not None:
            raise self.goto_error

    async def wait_for_timeout(self, timeout: float) -> None:
        self.waits.append(timeout)

    async def evaluate(self, script: str, *args: Any) -> Any:
        self.evaluate_calls.append((script, args))
        if script == SNAPSHOT_SCRIPT:
            return self.payload
        return self.socket_globals

    async def screenshot(self, path: str, **kwargs: Any) -> None:
        self.screenshot_calls.append({"path": path, **kwargs})
        if "clip" in kwargs and self.clip_error is not None:
            raise self.clip_error
        Path(path).write_bytes(b"")

    async def query_selector(self, selector: str) -> Optional[FakeElementHandle]:
        return self.handles.get(selector)


def element(tag: str, text: str = "", **extra: Any) -> Dict[str, Any]:
    """Build one element entry in the shape produced by the snapshot script."""
    return {
        "tag": tag,
        "id": extra.pop("id", None),
        "classList": extra.pop("classList", []),
        "text": text,
        "placeholder": extra.pop("placeholder", None),
        "bgColor": extra.pop("bgColor", "rgba(0, 0, 0, 0)"),
        "color": extra.pop("color", "rgb(255, 255, 255)"),
    }


@pytest.fixture
def trading_payload() -> Dict[str, Any]:
    """One canvas, one "Buy Call" button and one "1 Minute" select."""
    return {
        "url": "https://broker.example/en/demo-trade",
        "bodyBackground": "rgb(20, 24, 33)",
        "elements": [
            element("html", "Buy Call 1 Minute"),
            element("body", "Buy Call 1 Minute", bgColor="rgb(20, 24, 33)"),
            element("canvas", id="chart"),
            element("button", "Buy Call", classList=["btn", "btn-call"], bgColor="rgb(0,200,0)"),
            element("select", "1 Minute", id="timeframe"),
        ],
        "canvases": [
            {
                "index": 2,
                "width": 400,
                "height": 300,
                "rect": {"top": 20, "left": 10, "width": 400, "height": 300},
            }
        ],
    }


@pytest.fixture
def analysis_config(tmp_path: Path) -> AnalysisConfig:
    return AnalysisConfig(
        output_root=tmp_path,
        target_url="https://broker.example/en/demo-trade",
        settle_delay=0.5,
        navigation_timeout=10.0,
    )


@pytest.fixture
def writer(tmp_path: Path) -> ResultWriter:
    return ResultWriter(tmp_path / "results")
