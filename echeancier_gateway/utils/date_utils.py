"""Date manipulation utilities"""

from datetime import date
from typing import List

from dateutil.relativedelta import relativedelta


def add_months(from_date: date, months: int) -> date:
    """Calendar month arithmetic, clamping to the last day of shorter months (Jan 31 + 1 -> Feb 28/29)"""
    return from_date + relativedelta(months=months)


def month_offsets(start: date, step_months: int, count: int) -> List[date]:
    """Dates start + i*step_months for i = 1..count, each computed from start (no drift)"""
    return [add_months(start, i * step_months) for i in range(1, count + 1)]
