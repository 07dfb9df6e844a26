import os
from typing import Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session

from core.deps import require_admin_role
from db.session import get_session
from services.shift_guard import auto_close_stale_time_cards


router = APIRouter()


@router.post("/run-shift-guard")
def run_shift_guard_single_execution(
    threshold_hours: Optional[float] = None,
    session: Session = Depends(get_session),
    admin_user: dict = Depends(require_admin_role),
):
    """
    One-shot auto-close of stale time cards. Admin-only (Bearer token with admin role).

    Query params:
    - threshold_hours: optional override; defaults to env SHIFT_GUARD_THRESHOLD_HOURS or 24.0
    """
    default_threshold = float(os.getenv("SHIFT_GUARD_THRESHOLD_HOURS", "24"))
    effective_threshold = float(threshold_hours) if threshold_hours is not None else default_threshold

    closed_ids = auto_close_stale_time_cards(session, threshold_hours=effective_threshold)

    return {
        "status": "ok",
        "threshold_hours": effective_threshold,
        "closed_time_card_ids": closed_ids,
    }
