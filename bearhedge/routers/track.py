from fastapi import APIRouter, HTTPException
from fastapi.responses import HTMLResponse

from ..schemas import StreakSummary
from ..services.registry import get_track

router = APIRouter(prefix="/v1/track", tags=["track"])


def _widget():
    widget = get_track()
    if widget is None:
        raise HTTPException(status_code=503, detail="Track widget not running")
    return widget


@router.get("/widget", response_class=HTMLResponse)
def track_widget_html():
    return HTMLResponse(_widget().html)


@router.get("/streak", response_model=StreakSummary)
def track_streak():
    return _widget().summary
