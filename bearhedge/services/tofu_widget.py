"""Tofu mascot widget: rotates event/mood/time-of-day matched GIFs.

One ``TofuWidget`` owns one ``RotationState``. Every mutation happens inside
a single synchronous call (``build_pool``, ``rotate``, ``set_fallback``), so
the timers below can interleave on the event loop without ever observing a
half-built pool. The only suspension point is the initial document fetch.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass, field
from datetime import datetime, time, timedelta, timezone
from typing import Callable, List, Optional, Set

from ..schemas.tofu import Asset, CalendarDocument, ManifestDocument
from .display import TofuDisplay
from .documents import DocumentLoadError, Fetcher, describe, fetch_json, load_documents
from .tofu_context import TofuContext, resolve_context
from .tofu_pool import (
    display_text,
    effective_pool_size,
    effective_rotation_interval,
    match_assets,
    mood_class,
    select_pool,
)
from .util.widget_defaults import (
    DAY_MS,
    POOL_REFRESH_MS,
    TOFU_CALENDAR_PATH,
    TOFU_DEFAULT_IMAGE,
    TOFU_FALLBACK_STATUS,
    TOFU_MANIFEST_PATH,
    document_location,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


@dataclass
class RotationState:
    calendar: Optional[CalendarDocument] = None
    manifest: Optional[ManifestDocument] = None
    context: Optional[TofuContext] = None
    current_pool: List[Asset] = field(default_factory=list)
    pool_index: int = 0
    shown: Set[str] = field(default_factory=set)
    fallback_active: bool = False

    @property
    def loaded(self) -> bool:
        return self.calendar is not None and self.manifest is not None


def ms_until_midnight(now: datetime) -> int:
    """Real elapsed milliseconds until the next local midnight.

    Naive ``now`` is read as system local time. Both ends are compared in UTC
    so a DST change during the day is counted.
    """

    midnight = datetime.combine(now.date() + timedelta(days=1), time.min, tzinfo=now.tzinfo)
    if now.tzinfo is None:
        now, midnight = now.astimezone(), midnight.astimezone()
    delta = midnight.astimezone(timezone.utc) - now.astimezone(timezone.utc)
    return max(int(delta.total_seconds() * 1000), 0)


class TofuWidget:
    def __init__(
        self,
        display: Optional[TofuDisplay] = None,
        calendar_url: Optional[str] = None,
        manifest_url: Optional[str] = None,
        fetch: Fetcher = fetch_json,
        clock: Clock = datetime.now,
        rng: Optional[random.Random] = None,
        default_image: str = TOFU_DEFAULT_IMAGE,
        fallback_status: str = TOFU_FALLBACK_STATUS,
    ) -> None:
        self.display = display if display is not None else TofuDisplay.full()
        self.calendar_url = calendar_url or document_location(TOFU_CALENDAR_PATH)
        self.manifest_url = manifest_url or document_location(TOFU_MANIFEST_PATH)
        self.fetch = fetch
        self.clock = clock
        self.rng = rng or random.Random()
        self.default_image = default_image
        self.fallback_status = fallback_status
        self.state = RotationState()
        self.tasks: List[asyncio.Task] = []

    # Data loading --------------------------------------------------------

    async def start(self) -> bool:
        """Load documents, show the first asset and start all timers.

        Returns ``False`` (with the fallback display applied) when the
        documents could not be loaded.
        """

        try:
            calendar, manifest = await load_documents(
                self.calendar_url, self.manifest_url, fetch=self.fetch
            )
        except DocumentLoadError:
            logger.exception("tofu_widget_load_failed")
            self.set_fallback()
            return False

        self.state.calendar = calendar
        self.state.manifest = manifest
        self.update_context()
        self.rotate()
        self._start_timers()
        logger.info("tofu_widget_initialized", extra=describe(calendar, manifest))
        return True

    def set_fallback(self) -> None:
        self.state.fallback_active = True
        self.display.show_image(self.default_image, self.default_image)
        self.display.set_status(self.fallback_status)

    # Pool building -------------------------------------------------------

    def context_at(self, now: datetime) -> TofuContext:
        if self.state.calendar is None:
            raise RuntimeError("calendar not loaded")
        return resolve_context(self.state.calendar, now)

    def update_context(self) -> None:
        self.build_pool()

    def build_pool(self) -> List[Asset]:
        state = self.state
        if not state.loaded:
            return []

        context = self.context_at(self.clock())
        pool = select_pool(
            match_assets(state.manifest, context),
            state.shown,
            effective_pool_size(state.manifest.config),
            len(state.manifest.gifs),
            self.rng,
        )
        state.context = context
        state.current_pool = pool
        state.pool_index = 0

        self._update_display(context)
        logger.info(
            "tofu_pool_built",
            extra={"pool": [a.file for a in pool], "context": context.as_dict()},
        )
        return pool

    def _update_display(self, context: TofuContext) -> None:
        status, mood_text = display_text(self.state.calendar, context)
        style = mood_class(status)
        self.display.set_status(status, style)
        self.display.set_mood(mood_text, style)

    # Rotation ------------------------------------------------------------

    def rotate(self) -> Optional[Asset]:
        state = self.state
        if not state.current_pool:
            return None

        asset = state.current_pool[state.pool_index]
        self.display.show_image(state.manifest.config.base_path + asset.file, self.default_image)
        state.pool_index = (state.pool_index + 1) % len(state.current_pool)
        return asset

    def _start_timers(self) -> None:
        interval = effective_rotation_interval(self.state.manifest.config)
        self.tasks = [
            asyncio.create_task(self._every(interval, self.rotate, "rotate")),
            asyncio.create_task(self._every(POOL_REFRESH_MS, self.build_pool, "pool_refresh")),
            asyncio.create_task(self._midnight()),
        ]

    def _tick(self, callback: Callable[[], object], name: str) -> None:
        try:
            callback()
        except Exception:
            logger.exception("tofu_timer_tick_failed", extra={"timer": name})

    async def _every(self, interval_ms: int, callback: Callable[[], object], name: str) -> None:
        while True:
            await asyncio.sleep(interval_ms / 1000)
            self._tick(callback, name)

    async def _midnight(self) -> None:
        await asyncio.sleep(ms_until_midnight(self.clock()) / 1000)
        self._tick(self.update_context, "midnight")
        await self._every(DAY_MS, self.update_context, "midnight")

    async def aclose(self) -> None:
        """Cancel the timers; the application's shutdown hook calls this."""

        tasks, self.tasks = self.tasks, []
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    # Introspection -------------------------------------------------------

    def snapshot(self) -> dict:
        state = self.state
        return {
            "fallback": state.fallback_active,
            "context": state.context.as_dict() if state.context else None,
            "pool": [a.file for a in state.current_pool],
            "pool_index": state.pool_index,
            "shown_count": len(state.shown),
            "display": self.display.snapshot(),
        }
