"""Passive capture of API and WebSocket traffic issued by a page."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, List, Optional, Tuple

from .config import DEFAULT_INTEREST_SEGMENTS
from .models import NetworkRecord

logger = logging.getLogger("trade_recon")

UrlPredicate = Callable[[str], bool]


def interest_predicate(segments: Iterable[str]) -> UrlPredicate:
    """Build a predicate matching URLs that contain any of ``segments``."""
    needles = tuple(segments)

    def matches(url: str) -> bool:
        return any(needle in url for needle in needles)

    return matches


is_interesting_url = interest_predicate(DEFAULT_INTEREST_SEGMENTS)


@dataclass
class RecordingHandle:
    """Listener registration plus the records it has accumulated."""

    page: Any
    predicate: UrlPredicate
    records: List[NetworkRecord] = field(default_factory=list)
    listeners: List[Tuple[str, Callable[[Any], None]]] = field(default_factory=list)
    active: bool = True


def _record_from_request(request: Any) -> NetworkRecord:
    headers = request.headers
    return NetworkRecord(
        url=request.url,
        method=request.method,
        headers={str(k): str(v) for k, v in headers.items()},
        body=request.post_data,
    )


def start_recording(
    page: Any,
    predicate: Optional[UrlPredicate] = None,
    capture_websockets: bool = True,
) -> RecordingHandle:
    """Attach listeners that retain matching requests for the page lifetime.

    Listeners only observe events; request interception is never enabled, so
    the page's traffic proceeds unmodified.
    """
    handle = RecordingHandle(page=page, predicate=predicate or is_interesting_url)

    def on_request(request: Any) -> None:
        try:
            if not handle.predicate(request.url):
                return
            handle.records.append(_record_from_request(request))
        except Exception as exc:  # pylint: disable=broad-except
            logger.debug("Dropping unreadable request record: %s", exc)

    def on_websocket(websocket: Any) -> None:
        try:
            url = websocket.url
            if not handle.predicate(url):
                return
            handle.records.append(NetworkRecord(url=url, method="WEBSOCKET"))
        except Exception as exc:  # pylint: disable=broad-except
            logger.debug("Dropping unreadable websocket record: %s", exc)

    page.on("request", on_request)
    handle.listeners.append(("request", on_request))
    if capture_websockets:
        page.on("websocket", on_websocket)
        handle.listeners.append(("websocket", on_websocket))
    logger.debug("Traffic recorder attached (%d listener(s))", len(handle.listeners))
    return handle


def stop_recording(handle: RecordingHandle) -> Tuple[NetworkRecord, ...]:
    """Detach the listeners and return the records in the order observed."""
    if handle.active:
        for event, listener in handle.listeners:
            try:
                handle.page.remove_listener(event, listener)
            except Exception as exc:  # pylint: disable=broad-except
                logger.debug("Could not detach %s listener: %s", event, exc)
        handle.active = False
        logger.info("Captured %d network record(s)", len(handle.records))
    return tuple(handle.records)
