from pydantic import BaseModel
from typing import Optional, List


class StreakDay(BaseModel):
    day: int
    date: str
    short_date: str
    symbol: Optional[str] = None
    strategy: Optional[str] = None
    entry_time: Optional[str] = None
    exit_time: Optional[str] = None
    strikes: str = ""
    contracts: str = ""
    pnl_hkd: float = 0.0
    pnl_usd: float = 0.0
    notional_hkd: float = 0.0
    put_premium: Optional[float] = None
    call_premium: Optional[float] = None
    stop_loss_multiplier: Optional[float] = None
    cost_to_close: Optional[float] = None
    exit_status: str = "Closed"
    live: bool = False
    time_until_close: Optional[str] = None


class StreakSummary(BaseModel):
    has_data: bool
    streak_length: int = 0
    display_days: int = 0
    has_open_trade: bool = False
    total_hkd: float = 0.0
    total_usd: float = 0.0
    total_notional_hkd: float = 0.0
    days: List[StreakDay] = []
    live: Optional[StreakDay] = None
