"""Consecutive-day practice streak calculation."""
from datetime import date, timedelta
from typing import Iterable, Optional

from spellsan.models.progress_models import SessionRecord, local_date, local_now


def calculate_streak(session_history: Iterable[SessionRecord], today: Optional[date] = None) -> int:
    """Count consecutive practice days ending today, or yesterday if today is not practiced yet.

    Sessions dated after today (clock changes) are ignored.
    """
    if today is None:
        today = local_now().date()

    practice_days = sorted(
        {local_date(record.date) for record in session_history if local_date(record.date) <= today},
        reverse=True,
    )
    if not practice_days:
        return 0

    yesterday = today - timedelta(days=1)
    if practice_days[0] == today:
        expected = today
    elif practice_days[0] == yesterday:
        expected = yesterday
    else:
        return 0

    streak = 0
    for day in practice_days:
        if day != expected:
            break
        streak += 1
        expected -= timedelta(days=1)
    return streak
