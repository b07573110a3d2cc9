from __future__ import annotations

import random
import re
from typing import List, MutableSet, Optional, Sequence, Tuple, TypeVar

from ..schemas.tofu import Asset, CalendarDocument, ManifestConfig, ManifestDocument
from .tofu_context import NEUTRAL_MOOD, TofuContext

T = TypeVar("T")

DEFAULT_POOL_SIZE = 5
DEFAULT_ROTATION_INTERVAL_MS = 30_000
# shown-history is forgotten once it covers this share of the manifest
SHOWN_RESET_RATIO = 0.7

_NON_LETTER = re.compile(r"[^a-z]")

# Status text -> style class applied to both status and mood elements.
MOOD_CLASSES = {
    "ZOOMIES": "mood-party",
    "CELEBRATING": "mood-party",
    "SLEEPY": "mood-sleepy",
    "FESTIVE": "mood-festive",
    "MERRY": "mood-festive",
    "SPOOKY": "mood-spooky",
    "FEELING LOVE": "mood-love",
    "GREAT": "mood-great",
    "BAD": "mood-bad",
}


def event_key(name: str) -> str:
    """``"Lunar New Year"`` -> ``"lunar-new-year"``; manifests tag events this way."""

    return _NON_LETTER.sub("-", name.lower())


def effective_pool_size(config: ManifestConfig) -> int:
    size = config.pool_size
    if isinstance(size, int) and size >= 1:
        return size
    return DEFAULT_POOL_SIZE


def effective_rotation_interval(config: ManifestConfig) -> int:
    interval = config.rotation_interval
    if isinstance(interval, int) and interval > 0:
        return interval
    return DEFAULT_ROTATION_INTERVAL_MS


def _asset_matches(asset: Asset, context: TofuContext, key: Optional[str]) -> bool:
    if key is not None and key in asset.events:
        return True
    if context.time not in asset.time:
        return False
    if context.mood != NEUTRAL_MOOD and context.mood not in asset.mood:
        return False
    return True


def match_assets(manifest: ManifestDocument, context: TofuContext) -> List[Asset]:
    """Assets eligible for ``context``; the whole manifest when nothing matches."""

    key = event_key(context.event.name) if context.event else None
    matching = [a for a in manifest.gifs if _asset_matches(a, context, key)]
    if not matching:
        return list(manifest.gifs)
    return matching


def shuffle(items: Sequence[T], rng: Optional[random.Random] = None) -> List[T]:
    """Fisher-Yates shuffle of a copy of ``items``."""

    rng = rng or random
    out = list(items)
    for i in range(len(out) - 1, 0, -1):
        j = rng.randrange(i + 1)
        out[i], out[j] = out[j], out[i]
    return out


def _forget_if_saturated(shown: MutableSet[str], manifest_size: int) -> None:
    if len(shown) > manifest_size * SHOWN_RESET_RATIO:
        shown.clear()


def select_pool(
    candidates: Sequence[Asset],
    shown: MutableSet[str],
    pool_size: int,
    manifest_size: int,
    rng: Optional[random.Random] = None,
) -> List[Asset]:
    """Pick up to ``pool_size`` candidates, preferring ones not in ``shown``.

    ``shown`` is updated in place with the picked file keys.
    """

    _forget_if_saturated(shown, manifest_size)

    shuffled = shuffle(candidates, rng)
    not_shown = [a for a in shuffled if a.file not in shown]
    if len(not_shown) >= pool_size:
        pool = not_shown[:pool_size]
    else:
        pool = shuffled[:pool_size]

    shown.update(a.file for a in pool)
    _forget_if_saturated(shown, manifest_size)
    return pool


def display_text(calendar: CalendarDocument, context: TofuContext) -> Tuple[str, str]:
    """Return ``(status, mood_text)`` for the status panel."""

    event = context.event
    if event is not None:
        return event.status, f"{event.name.upper()} {event.emoji}"

    defaults = calendar.defaults.get(context.time)
    if defaults is None:
        return "", ""
    return defaults.status, f"{defaults.mood} {defaults.emoji}"


def mood_class(status: str) -> Optional[str]:
    return MOOD_CLASSES.get(status)
