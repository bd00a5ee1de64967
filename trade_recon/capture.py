"""High-level orchestration of one trading-page analysis session."""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path
from typing import Any, List, Optional, Sequence

from playwright.async_api import (
    Error as PlaywrightError,
    TimeoutError as PlaywrightTimeoutError,
    async_playwright,
)

from .classifier import classify
from .config import AnalysisConfig
from .models import AnalysisReport, CanvasDescriptor, CaptureStage, ElementDescriptor
from .recorder import RecordingHandle, interest_predicate, start_recording, stop_recording
from .snapshot import capture_snapshot, collect_socket_globals
from .writer import CHART_SCREENSHOT, OVERVIEW_SCREENSHOT, ResultWriter, build_output_dir

logger = logging.getLogger("trade_recon")


class NavigationError(RuntimeError):
    """Raised when the target page cannot be reached or never goes idle."""


def _advance(report: AnalysisReport, stage: CaptureStage) -> None:
    logger.debug("%s -> %s", report.stage.value, stage.value)
    report.stage = stage


def _fail(report: AnalysisReport, writer: ResultWriter, exc: BaseException) -> AnalysisReport:
    logger.error("Analysis of %s failed during %s: %s", report.url, report.stage.value, exc)
    report.error = str(exc) or type(exc).__name__
    report.stage = CaptureStage.FAILED
    writer.write_error(exc)
    return report


async def navigate(page: Any, config: AnalysisConfig) -> None:
    """Load the target URL and wait for network quiescence."""
    logger.info("Loading %s", config.target_url)
    try:
        await page.goto(
            config.target_url,
            wait_until="networkidle",
            timeout=config.navigation_timeout * 1000,
        )
    except PlaywrightTimeoutError as exc:
        raise NavigationError(
            f"Timed out after {config.navigation_timeout:.0f}s loading {config.target_url}"
        ) from exc
    except PlaywrightError as exc:
        raise NavigationError(f"Failed to load {config.target_url}: {exc}") from exc


async def capture_button_screenshots(
    page: Any,
    buttons: Sequence[ElementDescriptor],
    writer: ResultWriter,
) -> List[Path]:
    """Screenshot each addressable action button; failures skip that button."""
    saved: List[Path] = []
    for button in buttons:
        selector = button.selector
        if not selector:
            logger.debug("Button %r has no id or class; skipping screenshot", button.text)
            continue
        try:
            handle = await page.query_selector(selector)
            if handle is None:
                logger.warning("No element matches %s; skipping screenshot", selector)
                continue
            path = writer.button_screenshot_path(button.text)
            await handle.screenshot(path=str(path))
        except Exception as exc:  # pylint: disable=broad-except
            logger.warning("Couldn't screenshot button with selector %s: %s", selector, exc)
            continue
        saved.append(path)
    return saved


async def capture_chart_screenshot(
    page: Any,
    canvases: Sequence[CanvasDescriptor],
    writer: ResultWriter,
) -> Optional[Path]:
    """Clip a screenshot to the first chart canvas, using its last-known geometry."""
    if not canvases:
        return None
    geometry = canvases[0].geometry
    if geometry is None or geometry.is_empty:
        logger.warning("First canvas has no visible area; skipping chart screenshot")
        return None
    path = writer.path_for(CHART_SCREENSHOT)
    try:
        await page.screenshot(path=str(path), clip=geometry.to_clip())
    except Exception as exc:  # pylint: disable=broad-except
        logger.warning("Couldn't capture chart region %s: %s", geometry.to_dict(), exc)
        return None
    return path


async def run_capture(
    page: Any,
    config: AnalysisConfig,
    writer: ResultWriter,
    report: Optional[AnalysisReport] = None,
) -> AnalysisReport:
    """Run the capture sequence against an already opened page.

    The page is never closed here; its owner releases it.
    """
    if report is None:
        report = AnalysisReport(url=config.target_url, output_dir=writer.output_dir)
    report.stage = CaptureStage.SESSION_OPENED
    start = time.perf_counter()
    handle: Optional[RecordingHandle] = None
    try:
        handle = start_recording(
            page,
            interest_predicate(config.interest_segments),
            capture_websockets=config.capture_websockets,
        )
        _advance(report, CaptureStage.RECORDER_ATTACHED)

        await navigate(page, config)
        _advance(report, CaptureStage.NAVIGATED)

        if config.settle_delay:
            await page.wait_for_timeout(int(config.settle_delay * 1000))
        _advance(report, CaptureStage.SETTLED)

        snapshot = await capture_snapshot(page)
        classification = classify(snapshot, config.palette_top_k)
        report.classification = classification
        overview_path = writer.path_for(OVERVIEW_SCREENSHOT)
        await page.screenshot(path=str(overview_path), full_page=True)
        report.screenshots.append(overview_path)
        report.socket_globals = await collect_socket_globals(page)
        _advance(report, CaptureStage.CLASSIFIED)

        report.screenshots.extend(
            await capture_button_screenshots(
                page, classification.action_button_elements, writer
            )
        )
        chart_path = await capture_chart_screenshot(
            page, classification.chart_canvases, writer
        )
        if chart_path:
            report.screenshots.append(chart_path)
        _advance(report, CaptureStage.SCREENSHOTS_TAKEN)

        report.requests = stop_recording(handle)
        writer.write_results(
            classification,
            report.requests,
            report.socket_globals,
            text_limit=config.max_text_chars,
        )
        _advance(report, CaptureStage.FINALIZED)
    except Exception as exc:  # pylint: disable=broad-except
        if handle is not None:
            report.requests = stop_recording(handle)
        _fail(report, writer, exc)
    finally:
        report.elapsed_seconds = time.perf_counter() - start
    return report


async def analyze_url(config: AnalysisConfig) -> AnalysisReport:
    """Open a browser session, analyse ``config.target_url`` and close it."""
    writer = ResultWriter(build_output_dir(config))
    report = AnalysisReport(url=config.target_url, output_dir=writer.output_dir)
    async with async_playwright() as playwright:
        try:
            browser = await playwright.chromium.launch(headless=config.headless)
        except Exception as exc:  # pylint: disable=broad-except
            return _fail(report, writer, exc)
        try:
            page = await browser.new_page(
                viewport={"width": config.viewport_width, "height": config.viewport_height}
            )
            await run_capture(page, config, writer, report)
        except Exception as exc:  # pylint: disable=broad-except
            _fail(report, writer, exc)
        finally:
            if config.linger > 0:
                await asyncio.sleep(config.linger)
            await browser.close()
            logger.debug("Browser session closed")
    if report.ok:
        logger.info(
            "Analysis of %s finished in %.2fs (%d request(s), %d screenshot(s))",
            report.url,
            report.elapsed_seconds,
            len(report.requests),
            len(report.screenshots),
        )
    return report
