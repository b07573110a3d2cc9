import asyncio
import json

import pytest
import requests

from bearhedge.services import documents
from bearhedge.services.documents import DocumentLoadError, fetch_json, load_documents
from bearhedge.services.util.widget_defaults import DATA_DIR, document_location

CALENDAR = {
    "events": [
        {"name": "Christmas", "type": "fixed", "date": "12-25", "priority": 1, "status": "MERRY", "emoji": "🎄"}
    ],
    "defaults": {"night": {"status": "SLEEPY", "mood": "DREAMING", "emoji": "🌙"}},
}
MANIFEST = {
    "config": {"basePath": "images/tofu/", "poolSize": 2, "rotationInterval": 1000},
    "gifs": [{"file": "santa.gif", "events": ["christmas"]}],
}


class _Resp:
    def __init__(self, payload, status=200):
        self._payload = payload
        self.status_code = status

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}")

    def json(self):
        return self._payload


def test_load_documents_parses_both():
    payloads = {"cal": CALENDAR, "man": MANIFEST}
    calendar, manifest = asyncio.run(load_documents("cal", "man", fetch=payloads.__getitem__))
    assert calendar.events[0].name == "Christmas"
    assert calendar.events[0].region is None
    assert calendar.defaults["night"].status == "SLEEPY"
    assert manifest.config.base_path == "images/tofu/"
    assert manifest.config.pool_size == 2
    assert manifest.config.rotation_interval == 1000
    assert manifest.gifs[0].time == [] and manifest.gifs[0].events == ["christmas"]


def test_missing_priority_defaults_low():
    cal = {"events": [{"name": "X", "type": "fixed", "date": "01-01", "status": "GREAT"}]}
    calendar, _ = asyncio.run(load_documents("c", "m", fetch={"c": cal, "m": MANIFEST}.__getitem__))
    assert calendar.events[0].priority == 100
    assert calendar.defaults == {}


def test_http_error_becomes_load_error():
    def fetch(url):
        raise requests.HTTPError("HTTP 500")

    with pytest.raises(DocumentLoadError):
        asyncio.run(load_documents("cal", "man", fetch=fetch))


def test_non_object_document_is_rejected():
    with pytest.raises(DocumentLoadError):
        asyncio.run(load_documents("cal", "man", fetch={"cal": [], "man": MANIFEST}.__getitem__))


def test_schema_violation_is_rejected():
    bad = {"events": [{"name": "No date", "type": "fixed", "status": "GREAT"}]}
    with pytest.raises(DocumentLoadError):
        asyncio.run(load_documents("cal", "man", fetch={"cal": bad, "man": MANIFEST}.__getitem__))


def test_fetch_json_sends_accept_header(monkeypatch):
    seen = {}

    def fake_get(url, headers=None, timeout=None):
        seen.update(url=url, headers=headers, timeout=timeout)
        return _Resp(CALENDAR)

    monkeypatch.setattr(documents.requests, "get", fake_get)
    assert fetch_json("http://site.test/data/tofu-calendar.json") == CALENDAR
    assert seen["headers"]["Accept"] == "application/json"
    assert seen["timeout"] > 0


def test_fetch_json_raises_on_http_error(monkeypatch):
    monkeypatch.setattr(documents.requests, "get", lambda *a, **k: _Resp({}, status=404))
    with pytest.raises(requests.HTTPError):
        fetch_json("http://site.test/missing.json")


@pytest.mark.parametrize("pool_size", ["many", 2.5, 0, -3, True, None])
def test_unusable_pool_size_loads_as_unset(pool_size):
    manifest = {**MANIFEST, "config": {**MANIFEST["config"], "poolSize": pool_size, "rotationInterval": "fast"}}
    _, parsed = asyncio.run(load_documents("c", "m", fetch={"c": CALENDAR, "m": manifest}.__getitem__))
    assert parsed.config.pool_size is None
    assert parsed.config.rotation_interval is None
    assert parsed.config.base_path == "images/tofu/"


def test_fetch_json_reads_local_file(tmp_path):
    path = tmp_path / "tofu-calendar.json"
    path.write_text(json.dumps(CALENDAR), encoding="utf-8")
    assert fetch_json(str(path)) == CALENDAR


def test_missing_local_file_becomes_load_error(tmp_path):
    missing = str(tmp_path / "nope.json")
    with pytest.raises(DocumentLoadError):
        asyncio.run(load_documents(missing, missing))


def test_document_location_resolution():
    assert document_location("data/tofu-calendar.json", base_url="https://bearhedge.com/") == (
        "https://bearhedge.com/data/tofu-calendar.json"
    )
    assert document_location("https://cdn.test/m.json", base_url="") == "https://cdn.test/m.json"
    assert document_location("data/tofu-manifest.json", base_url="") == str(DATA_DIR / "tofu-manifest.json")
    assert (DATA_DIR / "tofu-manifest.json").exists()
