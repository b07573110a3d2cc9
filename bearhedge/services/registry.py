"""Process-wide widget instances shared by the app lifecycle and the routers."""

from typing import Optional

from .tofu_widget import TofuWidget
from .track_widget import TrackWidget

_tofu: Optional[TofuWidget] = None
_track: Optional[TrackWidget] = None


def get_tofu() -> Optional[TofuWidget]:
    return _tofu


def get_track() -> Optional[TrackWidget]:
    return _track


def install(tofu: Optional[TofuWidget] = None, track: Optional[TrackWidget] = None) -> None:
    global _tofu, _track
    _tofu, _track = tofu, track


async def start_all() -> None:
    """Create and start both widgets; a failed Tofu load leaves its fallback up."""

    tofu, track = TofuWidget(), TrackWidget()
    install(tofu, track)
    await tofu.start()
    await track.start()


async def stop_all() -> None:
    for widget in (_tofu, _track):
        if widget is not None:
            await widget.aclose()
