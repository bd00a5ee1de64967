"""Heuristic classification of trading-UI elements in a document snapshot.

Every category is an independent predicate over an ``ElementDescriptor``.
An element lands in every category whose predicate it satisfies; matching is
loose substring containment on lower-cased text, favouring recall.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, FrozenSet, List, Tuple

from .models import ClassificationResult, DocumentSnapshot, ElementDescriptor
from .palette import DEFAULT_TOP_K, extract_palette

logger = logging.getLogger("trade_recon")

SELECTION_TAGS = frozenset({"select"})
CLICKABLE_TAGS = frozenset({"button"})
CONTAINER_TAGS = frozenset({"div"})
INPUT_TAGS = frozenset({"input"})

TIMEFRAME_TERMS = ("minute", "hour", "day", "1m", "5m", "15m", "30m", "1h")
INDICATOR_TERMS = ("indicator", "bollinger", "macd", "rsi", "sma", "ema")
ASSET_TERMS = ("asset", "symbol", "eur/usd", "btc", "currency")
AMOUNT_TERMS = ("amount", "investment")
ACTION_TERMS = ("buy", "sell", "up", "down", "call", "put")
EXPIRATION_TERMS = ("expiration", "expiry", "duration", "time")

Predicate = Callable[[ElementDescriptor], bool]


def contains_any(value: str, terms: Tuple[str, ...]) -> bool:
    """Case-insensitive substring match; empty values never match."""
    if not value:
        return False
    lowered = value.lower()
    return any(term in lowered for term in terms)


def _has_tag(element: ElementDescriptor, tags: FrozenSet[str]) -> bool:
    return element.tag.lower() in tags


def is_timeframe_control(element: ElementDescriptor) -> bool:
    return _has_tag(element, SELECTION_TAGS | CLICKABLE_TAGS) and contains_any(
        element.text, TIMEFRAME_TERMS
    )


def is_indicator_control(element: ElementDescriptor) -> bool:
    return _has_tag(element, CLICKABLE_TAGS | CONTAINER_TAGS) and contains_any(
        element.text, INDICATOR_TERMS
    )


def is_asset_selector(element: ElementDescriptor) -> bool:
    return _has_tag(
        element, SELECTION_TAGS | CLICKABLE_TAGS | CONTAINER_TAGS
    ) and contains_any(element.text, ASSET_TERMS)


def is_amount_input(element: ElementDescriptor) -> bool:
    if not _has_tag(element, INPUT_TAGS | CLICKABLE_TAGS | CONTAINER_TAGS):
        return False
    return contains_any(element.text, AMOUNT_TERMS) or contains_any(
        element.placeholder, AMOUNT_TERMS
    )


def is_action_button(element: ElementDescriptor) -> bool:
    return _has_tag(element, CLICKABLE_TAGS | CONTAINER_TAGS) and contains_any(
        element.text, ACTION_TERMS
    )


def is_expiration_control(element: ElementDescriptor) -> bool:
    return _has_tag(
        element, SELECTION_TAGS | CLICKABLE_TAGS | CONTAINER_TAGS
    ) and contains_any(element.text, EXPIRATION_TERMS)


@dataclass(frozen=True)
class CategoryRule:
    """Binds a result field to the predicate that fills it."""

    field_name: str
    predicate: Predicate


CATEGORY_RULES: Tuple[CategoryRule, ...] = (
    CategoryRule("timeframe_elements", is_timeframe_control),
    CategoryRule("indicator_elements", is_indicator_control),
    CategoryRule("asset_selector_elements", is_asset_selector),
    CategoryRule("amount_input_elements", is_amount_input),
    CategoryRule("action_button_elements", is_action_button),
    CategoryRule("expiration_elements", is_expiration_control),
)


def _safe_match(rule: CategoryRule, element: ElementDescriptor) -> bool:
    try:
        return bool(rule.predicate(element))
    except (AttributeError, KeyError, TypeError) as exc:
        logger.debug(
            "Skipping <%s> for %s: %s", element.tag, rule.field_name, exc
        )
        return False


def classify(
    snapshot: DocumentSnapshot,
    palette_top_k: int = DEFAULT_TOP_K,
) -> ClassificationResult:
    """Sort the snapshot's elements into trading-UI categories."""
    buckets: Dict[str, List[ElementDescriptor]] = {
        rule.field_name: [] for rule in CATEGORY_RULES
    }
    for element in snapshot.elements:
        for rule in CATEGORY_RULES:
            if _safe_match(rule, element):
                buckets[rule.field_name].append(element)

    result = ClassificationResult(
        chart_canvases=tuple(snapshot.canvases),
        color_summary=extract_palette(snapshot, palette_top_k),
        **{name: tuple(items) for name, items in buckets.items()},
    )
    logger.info(
        "Classified %d element(s), %d canvas(es): %s",
        len(snapshot.elements),
        len(result.chart_canvases),
        ", ".join(f"{name}={len(items)}" for name, items in buckets.items()),
    )
    return result
