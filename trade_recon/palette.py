"""Background colour ranking across a document snapshot."""

from __future__ import annotations

from typing import Dict

from .models import DocumentSnapshot, PaletteSummary

DEFAULT_TOP_K = 10
TRANSPARENT_COLORS = frozenset({"rgba(0, 0, 0, 0)", "transparent"})


def extract_palette(snapshot: DocumentSnapshot, top_k: int = DEFAULT_TOP_K) -> PaletteSummary:
    """Count resolved background colours and keep the ``top_k`` most common.

    Colours are keyed by their exact string, so ``#fff`` and
    ``rgb(255, 255, 255)`` are counted separately. Ties keep the order in
    which colours were first met while walking the document.
    """
    tally: Dict[str, int] = {}
    for element in snapshot.elements:
        color = element.background_color
        if not color or color in TRANSPARENT_COLORS:
            continue
        tally[color] = tally.get(color, 0) + 1

    ranked = sorted(tally.items(), key=lambda item: item[1], reverse=True)
    return PaletteSummary(
        background_color=snapshot.body_background,
        colors=tuple(ranked[: max(top_k, 0)]),
    )
