"""Read-only snapshots of a document, taken from a live page or saved HTML."""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Mapping, Optional

from bs4 import BeautifulSoup

from .models import CanvasDescriptor, DocumentSnapshot, ElementDescriptor, GeometryRect
from .utils import normalize_text

logger = logging.getLogger("trade_recon")

# HTML defaults for a canvas without explicit width/height attributes.
DEFAULT_CANVAS_WIDTH = 300
DEFAULT_CANVAS_HEIGHT = 150

SNAPSHOT_SCRIPT = """
() => {
  const elements = [];
  const canvases = [];
  for (const el of document.querySelectorAll('*')) {
    const style = window.getComputedStyle(el);
    elements.push({
      tag: el.tagName.toLowerCase(),
      id: el.id || null,
      classList: Array.from(el.classList || []),
      text: (el.textContent || '').trim(),
      placeholder: typeof el.placeholder === 'string' ? el.placeholder : null,
      bgColor: style.backgroundColor,
      color: style.color,
    });
    if (el instanceof HTMLCanvasElement) {
      const rect = el.getBoundingClientRect();
      canvases.push({
        index: elements.length - 1,
        width: el.width,
        height: el.height,
        rect: {top: rect.top, left: rect.left, width: rect.width, height: rect.height},
      });
    }
  }
  const body = document.body;
  return {
    url: window.location.href,
    elements,
    canvases,
    bodyBackground: body ? window.getComputedStyle(body).backgroundColor : null,
  };
}
"""

SOCKET_GLOBALS_SCRIPT = """
() => Object.keys(window).filter(key => key.includes('socket') || key.includes('ws'))
"""

_STYLE_BACKGROUND = re.compile(r"(?:^|;)\s*background(?:-color)?\s*:\s*([^;]+)", re.I)
_STYLE_COLOR = re.compile(r"(?:^|;)\s*color\s*:\s*([^;]+)", re.I)


def _descriptor_from_payload(item: Mapping[str, Any]) -> ElementDescriptor:
    extra: Dict[str, str] = {}
    if item.get("placeholder") is not None:
        extra["placeholder"] = str(item["placeholder"])
    for key in ("bgColor", "color"):
        if item.get(key):
            extra[key] = str(item[key])
    return ElementDescriptor(
        tag=str(item.get("tag", "")).lower(),
        id=item.get("id") or None,
        class_list=tuple(item.get("classList") or ()),
        text=item.get("text") or "",
        extra_attributes=extra,
    )


def snapshot_from_payload(payload: Mapping[str, Any]) -> DocumentSnapshot:
    """Freeze the raw result of ``SNAPSHOT_SCRIPT`` into plain immutable data."""
    elements = tuple(_descriptor_from_payload(item) for item in payload.get("elements", []))
    canvases: List[CanvasDescriptor] = []
    for item in payload.get("canvases", []):
        rect = item.get("rect") or {}
        canvases.append(
            CanvasDescriptor(
                descriptor=elements[item["index"]],
                intrinsic_width=int(item.get("width") or 0),
                intrinsic_height=int(item.get("height") or 0),
                geometry=GeometryRect(
                    top=float(rect.get("top", 0.0)),
                    left=float(rect.get("left", 0.0)),
                    width=float(rect.get("width", 0.0)),
                    height=float(rect.get("height", 0.0)),
                ),
            )
        )
    return DocumentSnapshot(
        url=payload.get("url") or "",
        elements=elements,
        canvases=tuple(canvases),
        body_background=payload.get("bodyBackground"),
    )


async def capture_snapshot(page: Any) -> DocumentSnapshot:
    """Measure the live document once and return it as a snapshot."""
    payload = await page.evaluate(SNAPSHOT_SCRIPT)
    snapshot = snapshot_from_payload(payload)
    logger.debug(
        "Snapshot of %s: %d element(s), %d canvas(es)",
        snapshot.url,
        len(snapshot.elements),
        len(snapshot.canvases),
    )
    return snapshot


async def collect_socket_globals(page: Any) -> List[str]:
    """Return global identifiers whose name hints at a realtime channel."""
    keys = await page.evaluate(SOCKET_GLOBALS_SCRIPT)
    return [str(key) for key in keys or []]


def _style_value(style: str, pattern: re.Pattern) -> Optional[str]:
    match = pattern.search(style)
    if not match:
        return None
    return match.group(1).strip() or None


def _int_attribute(value: Any, default: int) -> int:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return default


def snapshot_from_html(html: str, url: str = "") -> DocumentSnapshot:
    """Build a snapshot from saved HTML.

    Only inline ``style`` declarations are visible here, so colours come from
    ``background``/``background-color``/``color`` attributes and canvases carry
    no geometry.
    """
    soup = BeautifulSoup(html, "html.parser")
    elements: List[ElementDescriptor] = []
    canvases: List[CanvasDescriptor] = []
    body_background: Optional[str] = None

    for tag in soup.find_all(True):
        style = tag.get("style") or ""
        extra: Dict[str, str] = {}
        placeholder = tag.get("placeholder")
        if placeholder is not None:
            extra["placeholder"] = placeholder
        background = _style_value(style, _STYLE_BACKGROUND)
        if background:
            extra["bgColor"] = background
        color = _style_value(style, _STYLE_COLOR)
        if color:
            extra["color"] = color

        classes = tag.get("class") or []
        if isinstance(classes, str):
            classes = classes.split()
        descriptor = ElementDescriptor(
            tag=tag.name.lower(),
            id=tag.get("id") or None,
            class_list=tuple(classes),
            text=normalize_text(tag.get_text()),
            extra_attributes=extra,
        )
        elements.append(descriptor)

        if descriptor.tag == "body":
            body_background = background
        if descriptor.tag == "canvas":
            canvases.append(
                CanvasDescriptor(
                    descriptor=descriptor,
                    intrinsic_width=_int_attribute(tag.get("width"), DEFAULT_CANVAS_WIDTH),
                    intrinsic_height=_int_attribute(tag.get("height"), DEFAULT_CANVAS_HEIGHT),
                )
            )

    return DocumentSnapshot(
        url=url,
        elements=tuple(elements),
        canvases=tuple(canvases),
        body_background=body_background,
    )
