from datetime import datetime

from bearhedge.schemas import CalendarDocument
from bearhedge.services.tofu_context import (
    resolve_context,
    resolve_market_mood,
    resolve_time_period,
    resolve_today_event,
    today_keys,
)


def cal(*events):
    return CalendarDocument.model_validate({"events": list(events), "defaults": {}})


def ev(name, date, type="fixed", region=None, priority=100, status="FESTIVE"):
    return {
        "name": name,
        "type": type,
        "date": date,
        "region": region,
        "priority": priority,
        "status": status,
        "emoji": "*",
    }


def test_time_bands_partition_the_day():
    expected = (
        ["night"] * 6 + ["morning"] * 6 + ["afternoon"] * 6 + ["evening"] * 4 + ["night"] * 2
    )
    got = [resolve_time_period(datetime(2026, 3, 1, h, 30)) for h in range(24)]
    assert got == expected


def test_band_edges():
    assert resolve_time_period(datetime(2026, 3, 1, 5, 59)) == "night"
    assert resolve_time_period(datetime(2026, 3, 1, 6, 0)) == "morning"
    assert resolve_time_period(datetime(2026, 3, 1, 11, 59)) == "morning"
    assert resolve_time_period(datetime(2026, 3, 1, 12, 0)) == "afternoon"
    assert resolve_time_period(datetime(2026, 3, 1, 18, 0)) == "evening"
    assert resolve_time_period(datetime(2026, 3, 1, 22, 0)) == "night"


def test_today_keys_are_zero_padded():
    assert today_keys(datetime(2026, 2, 3, 9)) == ("02-03", "2026-02-03")


def test_fixed_event_matches_every_year():
    calendar = cal(ev("Lunar New Year", "02-10", region="hk", priority=1))
    for year in (2024, 2025, 2031):
        event = resolve_today_event(calendar, datetime(year, 2, 10, 8))
        assert event is not None and event.name == "Lunar New Year"
    assert resolve_today_event(calendar, datetime(2026, 2, 11, 8)) is None


def test_lunar_event_needs_full_date():
    calendar = cal(ev("Mid-Autumn Festival", "2026-09-25", type="lunar"))
    assert resolve_today_event(calendar, datetime(2026, 9, 25, 20)).name == "Mid-Autumn Festival"
    assert resolve_today_event(calendar, datetime(2027, 9, 25, 20)) is None


def test_unknown_event_type_never_matches():
    calendar = cal(ev("Mystery", "05-05", type="solar"))
    assert resolve_today_event(calendar, datetime(2026, 5, 5, 12)) is None


def test_hk_region_beats_priority():
    calendar = cal(
        ev("Global Day", "07-01", region="us", priority=1),
        ev("HKSAR Establishment Day", "07-01", region="hk", priority=9),
    )
    event = resolve_today_event(calendar, datetime(2026, 7, 1, 10))
    assert event.name == "HKSAR Establishment Day"


def test_lower_priority_wins_without_hk():
    calendar = cal(
        ev("Minor", "12-24", priority=5),
        ev("Major", "12-24", priority=2),
        ev("Mid", "12-24", region="uk", priority=3),
    )
    assert resolve_today_event(calendar, datetime(2026, 12, 24, 10)).name == "Major"


def test_equal_rank_keeps_calendar_order():
    calendar = cal(
        ev("First", "03-03", region="hk", priority=1),
        ev("Second", "03-03", region="hk", priority=1),
    )
    for _ in range(5):
        assert resolve_today_event(calendar, datetime(2026, 3, 3, 10)).name == "First"


def test_market_mood_hook_is_empty():
    assert resolve_market_mood() is None
    assert resolve_market_mood(datetime(2026, 3, 3, 22)) is None


def test_resolve_context_composes_layers():
    calendar = cal(ev("Halloween", "10-31", status="SPOOKY"))
    ctx = resolve_context(calendar, datetime(2026, 10, 31, 19))
    assert ctx.time == "evening"
    assert ctx.mood == "neutral"
    assert ctx.event.name == "Halloween"

    plain = resolve_context(calendar, datetime(2026, 10, 30, 1))
    assert plain.time == "night" and plain.event is None
    assert plain.as_dict()["event"] is None
