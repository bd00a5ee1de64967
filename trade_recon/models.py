"""Data models shared across the capture pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .utils import build_selector, normalize_text

ColorCount = Tuple[str, int]


class CaptureStage(str, Enum):
    """Lifecycle stages of one analysis session."""

    INIT = "init"
    SESSION_OPENED = "session_opened"
    RECORDER_ATTACHED = "recorder_attached"
    NAVIGATED = "navigated"
    SETTLED = "settled"
    CLASSIFIED = "classified"
    SCREENSHOTS_TAKEN = "screenshots_taken"
    FINALIZED = "finalized"
    FAILED = "failed"


@dataclass(frozen=True)
class NetworkRecord:
    """A single outgoing request observed during the session."""

    url: str
    method: str
    headers: Mapping[str, str] = field(default_factory=dict)
    body: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "method": self.method,
            "headers": dict(self.headers),
            "postData": self.body,
        }


@dataclass(frozen=True)
class GeometryRect:
    """Viewport-relative bounding box, valid only at the instant it was read."""

    top: float
    left: float
    width: float
    height: float

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def to_dict(self) -> Dict[str, float]:
        return {
            "top": self.top,
            "left": self.left,
            "width": self.width,
            "height": self.height,
        }

    def to_clip(self) -> Dict[str, float]:
        """Return the rectangle in the shape Playwright expects for ``clip``."""
        return {
            "x": self.left,
            "y": self.top,
            "width": self.width,
            "height": self.height,
        }


@dataclass(frozen=True)
class ElementDescriptor:
    """Immutable snapshot of one document element."""

    tag: str
    id: Optional[str] = None
    class_list: Tuple[str, ...] = ()
    text: str = ""
    extra_attributes: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "extra_attributes", MappingProxyType(dict(self.extra_attributes))
        )

    @property
    def placeholder(self) -> str:
        return self.extra_attributes.get("placeholder", "")

    @property
    def background_color(self) -> Optional[str]:
        return self.extra_attributes.get("bgColor")

    @property
    def color(self) -> Optional[str]:
        return self.extra_attributes.get("color")

    @property
    def selector(self) -> Optional[str]:
        """CSS selector usable to re-resolve the element, or None."""
        return build_selector(self.id, self.class_list)

    def to_dict(
        self,
        attributes: Tuple[str, ...] = (),
        text_limit: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Serialize the element; ``text_limit`` caps only the written text."""
        data: Dict[str, Any] = {
            "tagName": self.tag.upper(),
            "id": self.id or "",
            "class": " ".join(self.class_list),
            "text": normalize_text(self.text, text_limit),
        }
        for name in attributes:
            data[name] = self.extra_attributes.get(name)
        return data


@dataclass(frozen=True)
class CanvasDescriptor:
    """A canvas element with its intrinsic size and on-screen geometry."""

    descriptor: ElementDescriptor
    intrinsic_width: int
    intrinsic_height: int
    geometry: Optional[GeometryRect] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.descriptor.id or "",
            "width": self.intrinsic_width,
            "height": self.intrinsic_height,
            "position": self.geometry.to_dict() if self.geometry else None,
        }


@dataclass(frozen=True)
class DocumentSnapshot:
    """Plain-data view of a document at the moment it was measured."""

    url: str
    elements: Tuple[ElementDescriptor, ...] = ()
    canvases: Tuple[CanvasDescriptor, ...] = ()
    body_background: Optional[str] = None


@dataclass(frozen=True)
class PaletteSummary:
    """Most common background colours plus the page background."""

    background_color: Optional[str]
    colors: Tuple[ColorCount, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "backgroundColor": self.background_color,
            "colorMap": [[color, count] for color, count in self.colors],
        }


@dataclass(frozen=True)
class ClassificationResult:
    """Typed inventory of candidate trading-UI regions."""

    chart_canvases: Tuple[CanvasDescriptor, ...] = ()
    timeframe_elements: Tuple[ElementDescriptor, ...] = ()
    indicator_elements: Tuple[ElementDescriptor, ...] = ()
    asset_selector_elements: Tuple[ElementDescriptor, ...] = ()
    amount_input_elements: Tuple[ElementDescriptor, ...] = ()
    action_button_elements: Tuple[ElementDescriptor, ...] = ()
    expiration_elements: Tuple[ElementDescriptor, ...] = ()
    color_summary: PaletteSummary = field(
        default_factory=lambda: PaletteSummary(background_color=None)
    )

    def chart_components(self, text_limit: Optional[int] = None) -> Dict[str, Any]:
        """Chart-related half of the result, as written to disk."""
        return {
            "chartCanvases": [canvas.to_dict() for canvas in self.chart_canvases],
            "timeframeElements": [
                el.to_dict(text_limit=text_limit) for el in self.timeframe_elements
            ],
            "indicatorElements": [
                el.to_dict(text_limit=text_limit) for el in self.indicator_elements
            ],
            "colors": self.color_summary.to_dict(),
        }

    def trading_interface(self, text_limit: Optional[int] = None) -> Dict[str, Any]:
        """Trading-control half of the result, as written to disk."""
        return {
            "assetSelector": [
                el.to_dict(text_limit=text_limit) for el in self.asset_selector_elements
            ],
            "amountInput": [
                el.to_dict(("placeholder",), text_limit) for el in self.amount_input_elements
            ],
            "actionButtons": [
                el.to_dict(("bgColor", "color"), text_limit)
                for el in self.action_button_elements
            ],
            "expirationSelector": [
                el.to_dict(text_limit=text_limit) for el in self.expiration_elements
            ],
        }


@dataclass
class AnalysisReport:
    """Outcome of one analysis run, successful or not."""

    url: str
    output_dir: Path
    stage: CaptureStage = CaptureStage.INIT
    classification: Optional[ClassificationResult] = None
    requests: Tuple[NetworkRecord, ...] = ()
    socket_globals: List[str] = field(default_factory=list)
    screenshots: List[Path] = field(default_factory=list)
    error: Optional[str] = None
    elapsed_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return self.stage is CaptureStage.FINALIZED

    def summary(self) -> Dict[str, Any]:
        """Compact JSON-friendly overview of the run."""
        data: Dict[str, Any] = {
            "url": self.url,
            "stage": self.stage.value,
            "output_dir": str(self.output_dir),
            "requests": len(self.requests),
            "socket_globals": list(self.socket_globals),
            "screenshots": [str(path) for path in self.screenshots],
            "elapsed_seconds": round(self.elapsed_seconds, 2),
        }
        if self.classification is not None:
            data["chart_components"] = self.classification.chart_components()
            data["trading_interface"] = self.classification.trading_interface()
        if self.error:
            data["error"] = self.error
        return data
