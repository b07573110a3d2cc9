from .tofu import (
    Event,
    TimeDefault,
    CalendarDocument,
    ManifestConfig,
    Asset,
    ManifestDocument,
    TofuContextOut,
    DisplayElementOut,
    TofuStateResponse,
    TofuContextResponse,
)
from .track import StreakDay, StreakSummary
