import logging
from datetime import datetime
from typing import List, Optional

from sqlmodel import Session, select

from models.time_card import TimeCard
from services.clock_service import auto_close_time_card
from services.hos import elapsed_hours
from utils.datetime_helpers import as_utc, utc_now
from utils.timezone_helpers import local_date

logger = logging.getLogger(__name__)


def auto_close_stale_time_cards(
    session: Session,
    now: Optional[datetime] = None,
    threshold_hours: float = 24.0,
) -> List[int]:
    """Close every open time card from a previous day that has been open too long.

    Returns the ids of the cards that were closed.
    """
    now = as_utc(now) if now else utc_now()
    today = local_date(now)

    open_cards = session.exec(
        select(TimeCard)
        .where(TimeCard.clock_out_time.is_(None))
        .where(TimeCard.date < today)
        .order_by(TimeCard.clock_in_time.asc())
    ).all()

    closed_ids: List[int] = []
    for card in open_cards:
        hours_open = elapsed_hours(card.clock_in_time, now)
        if hours_open <= threshold_hours:
            continue

        try:
            auto_close_time_card(session, card)
        except Exception:
            session.rollback()
            logger.exception("[SHIFT_GUARD] Failed to auto-close time card %s", card.id)
            raise
        closed_ids.append(card.id)

    if closed_ids:
        logger.info("[SHIFT_GUARD] Auto-closed %d time cards: %s", len(closed_ids), closed_ids)
    return closed_ids
