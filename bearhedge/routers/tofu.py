from datetime import datetime
from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from ..schemas import TofuContextResponse, TofuStateResponse
from ..services.registry import get_tofu
from ..services.tofu_pool import display_text, match_assets, mood_class

router = APIRouter(prefix="/v1/tofu", tags=["tofu"])


def _widget():
    widget = get_tofu()
    if widget is None:
        raise HTTPException(status_code=503, detail="Tofu widget not running")
    return widget


@router.get("/state", response_model=TofuStateResponse)
def tofu_state():
    return _widget().snapshot()


@router.get("/context", response_model=TofuContextResponse)
def tofu_context(at: Optional[datetime] = Query(None, description="ISO-8601 moment; defaults to now")):
    """Resolve the context for ``at`` without touching the rotation."""

    widget = _widget()
    state = widget.state
    if not state.loaded:
        raise HTTPException(status_code=503, detail="Tofu documents not loaded")

    moment = at or widget.clock()
    context = widget.context_at(moment)
    status, mood_text = display_text(state.calendar, context)
    return TofuContextResponse(
        at=moment.isoformat(),
        context=context.as_dict(),
        status=status,
        mood_text=mood_text,
        mood_class=mood_class(status),
        matching=[a.file for a in match_assets(state.manifest, context)],
        meta={"fallback": state.fallback_active, "gifs": len(state.manifest.gifs)},
    )
