from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List, Dict, Any

TimePeriod = str  # morning | afternoon | evening | night


class Event(BaseModel):
    name: str
    type: str  # "fixed" (date = MM-DD) or "lunar" (date = YYYY-MM-DD)
    date: str
    region: Optional[str] = None
    priority: int = 100
    status: str
    emoji: str = ""


class TimeDefault(BaseModel):
    status: str
    mood: str
    emoji: str = ""


class CalendarDocument(BaseModel):
    events: List[Event] = []
    defaults: Dict[TimePeriod, TimeDefault] = {}


class ManifestConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    base_path: str = Field("", alias="basePath")
    pool_size: Optional[int] = Field(None, alias="poolSize")
    rotation_interval: Optional[int] = Field(None, alias="rotationInterval")  # ms

    @field_validator("pool_size", "rotation_interval", mode="before")
    @classmethod
    def _positive_int_or_unset(cls, v: Any) -> Optional[int]:
        # anything else falls back to the widget defaults
        if isinstance(v, bool) or not isinstance(v, int) or v < 1:
            return None
        return v


class Asset(BaseModel):
    file: str
    time: List[str] = []
    mood: List[str] = []
    events: List[str] = []


class ManifestDocument(BaseModel):
    config: ManifestConfig = ManifestConfig()
    gifs: List[Asset] = []


class TofuContextOut(BaseModel):
    time: TimePeriod
    mood: str
    event: Optional[Event] = None


class DisplayElementOut(BaseModel):
    src: Optional[str] = None
    text: str = ""
    classes: List[str] = []


class TofuStateResponse(BaseModel):
    fallback: bool
    context: Optional[TofuContextOut] = None
    pool: List[str] = []
    pool_index: int = 0
    shown_count: int = 0
    display: Dict[str, Optional[DisplayElementOut]]


class TofuContextResponse(BaseModel):
    at: str
    context: TofuContextOut
    status: str
    mood_text: str
    mood_class: Optional[str] = None
    matching: List[str]
    meta: Dict[str, Any] = {}
