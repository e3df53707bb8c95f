import calendar
from collections import defaultdict
from datetime import date
from functools import lru_cache
from typing import Dict

import numpy as np

from fintrack.domain import EXPENSE, Transaction
from fintrack.filters import by_month, by_type, iter_transactions


def monthly_totals(trans: tuple[Transaction, ...], kind: str = EXPENSE) -> Dict[str, float]:
    """Sum amounts of one transaction type per YYYY-MM, oldest month first."""
    monthly: Dict[str, float] = defaultdict(float)
    for t in iter_transactions(trans, by_type(kind)):
        monthly[t.date[:7]] += t.amount
    return {m: monthly[m] for m in sorted(monthly)}


@lru_cache(maxsize=128)
def forecast_expenses(trans: tuple[Transaction, ...], period: int = 3) -> float:
    """Next month's expected spend.

    Blends the average of the last ``period`` months with a linear-trend
    extrapolation of the same window. One month of data returns that
    month's total as is.
    """
    values = list(monthly_totals(trans, EXPENSE).values())[-max(1, period):]

    if not values:
        return 0.0
    if len(values) == 1:
        return float(values[0])

    avg = float(np.mean(values))
    slope = np.polyfit(np.arange(len(values)), values, 1)[0]
    trend_next = max(values[-1] + float(slope), 0.0)
    return max(0.6 * avg + 0.4 * trend_next, 0.0)


def project_month_end(trans: tuple[Transaction, ...], today: date) -> float:
    """Scale this month's spend so far to the full month."""
    month = today.strftime("%Y-%m")
    spent = sum(
        t.amount
        for t in iter_transactions(trans, by_type(EXPENSE))
        if by_month(month)(t) and t.date[:10] <= today.isoformat()
    )
    days_in_month = calendar.monthrange(today.year, today.month)[1]
    return spent * days_in_month / today.day
