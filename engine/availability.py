"""
Availability gate.

Decides whether a survey accepts respondents right now. The caller passes
the current time in; nothing here reads a clock.
"""

from models.enums import ClosedReason, SurveyStatus
from models.schemas import Availability, Schedule


def check_availability(status: SurveyStatus, schedule: Schedule, now: int) -> Availability:
    """
    Check whether a survey is open.

    Precedence (first match wins):
        1. locked                         -> closed, "locked"
        2. draft                          -> closed, "locked" (drafts look locked)
        3. open_at set and now < open_at  -> closed, "not-started"
        4. close_at set and now > close_at -> closed, "ended"
        5. otherwise                      -> open

    Both schedule bounds are inclusive: a survey is open at exactly open_at
    and at exactly close_at.

    Args:
        status: Survey lifecycle status
        schedule: Optional open/close window (ms epoch)
        now: Current time in ms epoch

    Returns:
        Availability with open flag and, when closed, the reason
    """
    if status in (SurveyStatus.LOCKED, SurveyStatus.DRAFT):
        return Availability(open=False, reason=ClosedReason.LOCKED)

    if schedule.open_at is not None and now < schedule.open_at:
        return Availability(open=False, reason=ClosedReason.NOT_STARTED)

    if schedule.close_at is not None and now > schedule.close_at:
        return Availability(open=False, reason=ClosedReason.ENDED)

    return Availability(open=True)
