"""Environment-driven defaults shared by the site widgets."""

import os
from pathlib import Path
from typing import Optional

PROJECT_ROOT = Path(__file__).resolve().parents[3]
DATA_DIR = Path(os.getenv("TOFU_DATA_DIR", str(PROJECT_ROOT / "data")))

# Unset: documents are read straight from the project tree.
SITE_BASE_URL = os.getenv("SITE_BASE_URL", "")
TOFU_CALENDAR_PATH = os.getenv("TOFU_CALENDAR_PATH", "data/tofu-calendar.json")
TOFU_MANIFEST_PATH = os.getenv("TOFU_MANIFEST_PATH", "data/tofu-manifest.json")
TOFU_DEFAULT_IMAGE = os.getenv("TOFU_DEFAULT_IMAGE", "images/tofu/default.gif")
TOFU_FALLBACK_STATUS = os.getenv("TOFU_FALLBACK_STATUS", "GOOD BOY")

TRACK_API_BASE = os.getenv("TRACK_API_BASE", "https://apeyolo.com")
TRACK_UPDATE_INTERVAL_MS = int(os.getenv("TRACK_UPDATE_INTERVAL_MS", "30000"))

FETCH_TIMEOUT = float(os.getenv("WIDGET_FETCH_TIMEOUT", "10"))

POOL_REFRESH_MS = 5 * 60 * 1000
DAY_MS = 24 * 60 * 60 * 1000


def is_url(location: str) -> bool:
    return location.startswith(("http://", "https://"))


def document_location(path: str, base_url: Optional[str] = None) -> str:
    """Where a site-relative document lives: a URL under the site, or a local file.

    ``data/tofu-calendar.json`` resolves to ``<SITE_BASE_URL>/data/...`` when a
    base URL is configured and to ``<DATA_DIR>/tofu-calendar.json`` otherwise.
    """

    if is_url(path) or os.path.isabs(path):
        return path
    base = SITE_BASE_URL if base_url is None else base_url
    if base:
        return base.rstrip("/") + "/" + path.lstrip("/")
    rel = Path(path)
    if rel.parts and rel.parts[0] == "data":
        rel = Path(*rel.parts[1:])
    return str(DATA_DIR / rel)


def static_root() -> Optional[str]:
    return os.getenv("TOFU_STATIC_ROOT") or None


def autostart_enabled() -> bool:
    return os.getenv("WIDGETS_AUTOSTART", "true").lower() == "true"
