"""Fetch the calendar and manifest documents the Tofu widget runs on."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Tuple

import requests
from pydantic import ValidationError

from ..schemas.tofu import CalendarDocument, ManifestDocument
from .util.widget_defaults import FETCH_TIMEOUT, is_url

logger = logging.getLogger(__name__)

HEADERS = {"Accept": "application/json"}

Fetcher = Callable[[str], Any]


class DocumentLoadError(RuntimeError):
    """A widget document could not be fetched or did not parse."""


def fetch_json(location: str) -> Any:
    """GET ``location`` as JSON, or read it from disk when it is a local path."""

    if not is_url(location):
        return json.loads(Path(location).read_text(encoding="utf-8"))
    r = requests.get(location, headers=HEADERS, timeout=FETCH_TIMEOUT)
    r.raise_for_status()
    return r.json()


def _parse(model, url: str, payload: Any):
    if not isinstance(payload, dict):
        raise DocumentLoadError(f"{url}: expected a JSON object")
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise DocumentLoadError(f"{url}: {exc.error_count()} validation error(s)") from exc


async def load_documents(
    calendar_url: str,
    manifest_url: str,
    fetch: Fetcher = fetch_json,
) -> Tuple[CalendarDocument, ManifestDocument]:
    """Fetch both documents concurrently and validate them.

    Raises ``DocumentLoadError`` on any network, HTTP, decoding or schema
    failure.
    """

    try:
        calendar_raw, manifest_raw = await asyncio.gather(
            asyncio.to_thread(fetch, calendar_url),
            asyncio.to_thread(fetch, manifest_url),
        )
    except (requests.RequestException, OSError, ValueError) as exc:
        raise DocumentLoadError(str(exc)) from exc

    calendar = _parse(CalendarDocument, calendar_url, calendar_raw)
    manifest = _parse(ManifestDocument, manifest_url, manifest_raw)
    logger.debug(
        "tofu_documents_loaded",
        extra={"events": len(calendar.events), "gifs": len(manifest.gifs)},
    )
    return calendar, manifest


def describe(calendar: CalendarDocument, manifest: ManifestDocument) -> Dict[str, int]:
    return {"gifs": len(manifest.gifs), "events": len(calendar.events)}
