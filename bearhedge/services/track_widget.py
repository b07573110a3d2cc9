"""Track widget: win-streak breakdown rendered from the trade API.

Polls ``/api/defi/trades`` and ``/api/defi/current`` and keeps the latest
summary and HTML fragment. Fetch failures degrade to an empty state.
"""

from __future__ import annotations

import asyncio
import calendar
import logging
import math
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests
from jinja2 import Environment, FileSystemLoader, select_autoescape

from ..schemas.track import StreakDay, StreakSummary
from .util.widget_defaults import FETCH_TIMEOUT, TRACK_API_BASE, TRACK_UPDATE_INTERVAL_MS

logger = logging.getLogger(__name__)

HEADERS = {"Accept": "application/json"}
HKD_RATE = 7.8
CONTRACT_MULTIPLIER = 100

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates" / "widgets"

Trade = Dict[str, Any]


# Fetching ------------------------------------------------------------------


def _get_json(path: str, api_base: str) -> Any:
    r = requests.get(f"{api_base}{path}", headers=HEADERS, timeout=FETCH_TIMEOUT)
    r.raise_for_status()
    return r.json()


def fetch_trades(api_base: str = TRACK_API_BASE) -> List[Trade]:
    try:
        data = _get_json("/api/defi/trades", api_base)
    except (requests.RequestException, ValueError):
        logger.warning("track_fetch_failed", extra={"endpoint": "trades"}, exc_info=True)
        return []
    if not isinstance(data, dict):
        return []
    return data.get("trades") or []


def fetch_current(api_base: str = TRACK_API_BASE) -> Optional[Dict[str, Any]]:
    try:
        data = _get_json("/api/defi/current", api_base)
    except (requests.RequestException, ValueError):
        logger.warning("track_fetch_failed", extra={"endpoint": "current"}, exc_info=True)
        return None
    return data if isinstance(data, dict) else None


# Formatting ----------------------------------------------------------------


def _num(value: float) -> str:
    """Print ``2.0`` as ``2`` and ``1.5`` as ``1.5``."""

    if float(value).is_integer():
        return str(int(value))
    return str(value)


def format_number(num: float) -> str:
    return f"{math.floor(num + 0.5):,}"


def format_amount(num: float) -> str:
    """Thousands separators, at most three decimals, no trailing zeros."""

    text = f"{num:,.3f}".rstrip("0").rstrip(".")
    return text or "0"


def _ordinal_suffix(day: int) -> str:
    if day in (1, 21, 31):
        return "st"
    if day in (2, 22):
        return "nd"
    if day in (3, 23):
        return "rd"
    return "th"


def format_date(date_str: str) -> str:
    d = date.fromisoformat(date_str[:10])
    return (
        f"{calendar.day_name[d.weekday()]}, {d.day}{_ordinal_suffix(d.day)} "
        f"{calendar.month_name[d.month]} {d.year}"
    )


def format_short_date(date_str: Optional[str]) -> str:
    if not date_str:
        return ""
    d = date.fromisoformat(date_str[:10])
    return f"{calendar.month_abbr[d.month]} {d.day}"


def format_exit_status(trade: Trade) -> str:
    status = (trade.get("status") or "").lower()
    reason = (trade.get("exitReason") or "").lower()

    if status == "expired" or "expired" in reason:
        return "Expired"
    if status == "stopped out" or "stop" in reason or "auto-closed" in reason:
        return "Stopped"
    if "exercised" in reason or "assigned" in reason:
        return "Exercised"
    return "Closed"


def contracts_breakdown(contracts: Any, put_strike: Any, call_strike: Any) -> str:
    has_put = put_strike is not None
    has_call = call_strike is not None
    if has_put and has_call:
        per_leg = _num(contracts / 2)
        return f"{per_leg}P / {per_leg}C"
    if has_put:
        return f"{contracts}P"
    if has_call:
        return f"{contracts}C"
    return f"{contracts}"


def strikes_text(put_strike: Any, call_strike: Any) -> str:
    parts = []
    if put_strike:
        parts.append(f"{_num(put_strike)}P")
    if call_strike:
        parts.append(f"{_num(call_strike)}C")
    return " / ".join(parts)


# Streak math ---------------------------------------------------------------


def calculate_streak(trades: List[Trade]) -> List[Trade]:
    """Most recent unbroken run of winning closed trades, oldest first."""

    closed = [t for t in trades if t.get("outcome") != "open" and t.get("status") != "open"]
    closed.sort(key=lambda t: t.get("date") or "", reverse=True)

    streak: List[Trade] = []
    for trade in closed:
        if trade.get("outcome") != "win":
            break
        streak.append(trade)
    streak.reverse()
    return streak


def has_open_trade(current: Optional[Dict[str, Any]]) -> bool:
    if not current or not current.get("hasTrade"):
        return False
    trade = current.get("trade") or {}
    return bool(trade.get("isOpen")) and trade.get("status") == "open"


def _closed_day(idx: int, trade: Trade) -> StreakDay:
    put_strike = trade.get("putStrike")
    call_strike = trade.get("callStrike")
    return StreakDay(
        day=idx,
        date=trade.get("date") or "",
        short_date=format_short_date(trade.get("date")),
        symbol=trade.get("symbol"),
        strategy=trade.get("strategy"),
        entry_time=trade.get("entryTime"),
        exit_time=trade.get("exitTime"),
        strikes=strikes_text(put_strike, call_strike),
        contracts=contracts_breakdown(trade.get("contracts") or 0, put_strike, call_strike),
        pnl_hkd=trade.get("entryPremium") or 0,
        pnl_usd=trade.get("premiumReceived") or 0,
        notional_hkd=trade.get("totalNotionalHKD") or 0,
        put_premium=trade.get("leg1Premium") or None,
        call_premium=trade.get("leg2Premium") or None,
        stop_loss_multiplier=trade.get("stopLossMultiplier") or None,
        cost_to_close=trade.get("costToClose") or None,
        exit_status=format_exit_status(trade),
    )


def _live_day(idx: int, current: Dict[str, Any]) -> StreakDay:
    t = current["trade"]
    contracts = t.get("contracts") or 0

    premium_usd = 0.0
    put_strike = call_strike = put_premium = call_premium = None
    for leg in t.get("legs") or []:
        leg_premium = leg.get("premiumUSD") or 0
        premium_usd += leg_premium
        per_contract = leg_premium / (leg["contracts"] * CONTRACT_MULTIPLIER) if leg.get("contracts") else None
        if leg.get("type") == "PUT":
            put_strike, put_premium = leg.get("strike"), per_contract
        elif leg.get("type") == "CALL":
            call_strike, call_premium = leg.get("strike"), per_contract

    if put_strike and call_strike:
        contracts_text = f"{_num(contracts / 2)}P / {_num(contracts / 2)}C"
        legs = 2
    else:
        contracts_text = f"{contracts}P" if put_strike else f"{contracts}C" if call_strike else f"{contracts}"
        legs = 1
    notional = ((put_strike or 0) + (call_strike or 0)) * (contracts / legs) * CONTRACT_MULTIPLIER * HKD_RATE

    stop = t.get("stopLossMultiplier")
    return StreakDay(
        day=idx,
        date=current.get("todayStr") or "",
        short_date=format_short_date(current.get("todayStr")),
        symbol=t.get("symbol"),
        strategy=t.get("strategy"),
        entry_time=t.get("entryTime"),
        strikes=strikes_text(put_strike, call_strike),
        contracts=contracts_text,
        pnl_hkd=premium_usd * HKD_RATE,
        pnl_usd=premium_usd,
        notional_hkd=notional,
        put_premium=put_premium or None,
        call_premium=call_premium or None,
        stop_loss_multiplier=float(stop) if stop else None,
        exit_status="Open",
        live=True,
        time_until_close=current.get("timeUntilClose"),
    )


def summarize_streak(trades: List[Trade], current: Optional[Dict[str, Any]]) -> StreakSummary:
    if not trades:
        return StreakSummary(has_data=False)

    streak = calculate_streak(trades)
    is_open = has_open_trade(current)
    length = len(streak)
    return StreakSummary(
        has_data=True,
        streak_length=length,
        display_days=length + 1 if is_open else length,
        has_open_trade=is_open,
        total_hkd=sum(t.get("entryPremium") or 0 for t in streak),
        total_usd=sum(t.get("premiumReceived") or 0 for t in streak),
        total_notional_hkd=sum(t.get("totalNotionalHKD") or 0 for t in streak),
        days=[_closed_day(i + 1, t) for i, t in enumerate(streak)],
        live=_live_day(length + 1, current) if is_open else None,
    )


# Rendering -----------------------------------------------------------------

_env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html", "j2"]),
    trim_blocks=True,
    lstrip_blocks=True,
)
_env.filters["num"] = format_number
_env.filters["amount"] = format_amount


def render_summary_html(summary: StreakSummary) -> str:
    return _env.get_template("track.html.j2").render(s=summary)


def render_track_html(trades: List[Trade], current: Optional[Dict[str, Any]]) -> str:
    return render_summary_html(summarize_streak(trades, current))


# Poller --------------------------------------------------------------------


class TrackWidget:
    def __init__(self, api_base: str = TRACK_API_BASE, interval_ms: int = TRACK_UPDATE_INTERVAL_MS) -> None:
        self.api_base = api_base
        self.interval_ms = interval_ms
        self.summary: StreakSummary = StreakSummary(has_data=False)
        self.html: str = ""
        self.task: Optional[asyncio.Task] = None

    async def refresh(self) -> StreakSummary:
        trades, current = await asyncio.gather(
            asyncio.to_thread(fetch_trades, self.api_base),
            asyncio.to_thread(fetch_current, self.api_base),
        )
        summary = summarize_streak(trades, current)
        self.summary = summary
        self.html = render_summary_html(summary)
        logger.info(
            "track_widget_rendered",
            extra={"streak_length": summary.streak_length, "trades": len(trades)},
        )
        return summary

    async def start(self) -> None:
        """Schedule polling; the first refresh runs inside the task."""

        self.task = asyncio.create_task(self._poll())

    async def _poll(self) -> None:
        while True:
            try:
                await self.refresh()
            except Exception:
                logger.exception("track_widget_refresh_failed")
            await asyncio.sleep(self.interval_ms / 1000)

    async def aclose(self) -> None:
        task, self.task = self.task, None
        if task is not None:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
