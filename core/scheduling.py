"""
Visit date scheduling for campaign influencers.

Visits are spread evenly across the campaign window; replacements are
slotted after the latest visit already booked.
"""

from datetime import date, timedelta
from typing import Iterable, List, Optional
import math


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def campaign_end_date(start_date: Optional[date], duration_days: Optional[int]) -> Optional[date]:
    if not start_date or not duration_days or duration_days <= 0:
        return None
    return start_date + timedelta(days=duration_days - 1)


def assign_influencer_dates(count: int, start_date: Optional[date],
                            duration_days: Optional[int]) -> List[Optional[date]]:
    """
    Return one visit date per influencer.

    With a duration the visits are spread evenly from the start date to the
    last campaign day. Without one, influencers visit on consecutive days.
    No start date means no dates at all.
    """
    if not start_date:
        return [None] * count
    if count == 0:
        return []

    end_date = campaign_end_date(start_date, duration_days)
    if end_date is None:
        return [start_date + timedelta(days=i) for i in range(count)]

    if count == 1:
        return [start_date]

    interval = (duration_days - 1) / (count - 1)
    dates = []
    for index in range(count):
        scheduled = start_date + timedelta(days=_round_half_up(index * interval))
        dates.append(min(scheduled, end_date))
    return dates


def next_visit_date(start_date: Optional[date], duration_days: Optional[int],
                    booked_dates: Iterable[Optional[date]]) -> Optional[date]:
    """
    Pick a visit date for a replacement influencer.

    The day after the latest booked visit, clamped to the last campaign day.
    """
    if not start_date:
        return None

    booked = [d for d in booked_dates if d is not None]
    if not booked:
        return start_date

    latest = max(booked)
    end_date = campaign_end_date(start_date, duration_days)
    if end_date is None:
        return latest + timedelta(days=1)

    if latest < end_date:
        return latest + timedelta(days=1)
    return end_date
