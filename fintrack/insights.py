"""Heuristic rules turning aggregated numbers into scores and advice.

Everything here is pure: callers pass totals computed by
:mod:`fintrack.aggregates` and get back plain numbers, dicts or strings.
"""
import calendar
from datetime import date
from typing import Dict, Iterable, List, Mapping, Tuple

from fintrack.aggregates import savings_ratio
from fintrack.config import (
    CONCENTRATION_THRESHOLD, CURRENCY, HEALTH_WEIGHTS,
    HIGH_SAVINGS_RATIO, LOW_SAVINGS_RATIO, SAVINGS_GOAL_RATIO,
)
from fintrack.domain import Subscription

MSG_NO_INCOME = "Add income to activate financial intelligence."
MSG_NEGATIVE = "🚨 Negative savings detected. Immediate cost restructuring required."
MSG_OVER_BUDGET = "⚠️ Monthly budget exceeded. Pause non-essential spending until next cycle."
MSG_LOW = "⚠️ Low savings rate. Cut discretionary expenses and automate investments."
MSG_STRONG = "🚀 Strong capital accumulation. Consider diversified long-term investments."
MSG_BALANCED = "✅ Balanced financial structure. Maintain expense discipline."


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def savings_score(ratio: float) -> float:
    # 50% savings ratio earns the full score
    return clamp(ratio * 2)


def budget_score(expense: float, budget: float) -> float:
    if budget <= 0 or expense <= budget:
        return 100.0
    overspend_pct = (expense - budget) / budget * 100
    return clamp(100 - overspend_pct * 2)


def stability_score(income: float, expense: float) -> float:
    if income <= 0:
        return 0.0
    return clamp((1 - expense / income) * 100 + 50)


def health_score(income: float, expense: float, saved: float, budget: float) -> int:
    """Weighted blend of savings, budget adherence and stability, 0..100."""
    if income <= 0:
        return 0
    blended = (
        HEALTH_WEIGHTS["savings"] * savings_score(savings_ratio(income, saved))
        + HEALTH_WEIGHTS["budget"] * budget_score(expense, budget)
        + HEALTH_WEIGHTS["stability"] * stability_score(income, expense)
    )
    return int(round(clamp(blended)))


def health_label(score: int) -> str:
    if score >= 75:
        return "strong"
    if score >= 50:
        return "fair"
    return "weak"


def is_budget_breached(expense: float, budget: float) -> bool:
    return budget > 0 and expense > budget


def concentrated_category(categories: Mapping[str, float], income: float) -> Tuple[str, float] | None:
    """Largest category whose spend exceeds the concentration threshold of income."""
    if income <= 0 or not categories:
        return None
    name, spent = max(categories.items(), key=lambda item: item[1])
    share = spent / income * 100
    if share > CONCENTRATION_THRESHOLD:
        return name, share
    return None


def insight_message(
    income: float,
    expense: float,
    saved: float,
    budget: float,
    categories: Mapping[str, float] | None = None,
) -> str:
    ratio = savings_ratio(income, saved)

    if income <= 0:
        return MSG_NO_INCOME
    if saved < 0:
        text = MSG_NEGATIVE
    elif is_budget_breached(expense, budget):
        text = MSG_OVER_BUDGET
    elif ratio < LOW_SAVINGS_RATIO:
        text = MSG_LOW
    elif ratio > HIGH_SAVINGS_RATIO:
        text = MSG_STRONG
    else:
        text = MSG_BALANCED

    hot = concentrated_category(categories or {}, income)
    if hot:
        name, share = hot
        text += f" {name} alone takes {share:.0f}% of your income."
    return text


def savings_goal_progress(income: float, saved: float) -> float:
    """Percent of the way to the target savings ratio, capped at 100."""
    return clamp(savings_ratio(income, saved) / SAVINGS_GOAL_RATIO * 100)


def budget_status(expense: float, budget: float) -> Dict[str, float | bool | str]:
    if budget <= 0:
        return {
            "is_set": False,
            "spent": expense,
            "remaining": 0.0,
            "percent_used": 0.0,
            "exceeded": False,
            "message": "No budget set.",
        }
    exceeded = expense > budget
    remaining = budget - expense
    if exceeded:
        message = f"Budget exceeded by {CURRENCY}{-remaining:,.0f}."
    else:
        message = f"{CURRENCY}{remaining:,.0f} left in your budget."
    return {
        "is_set": True,
        "spent": expense,
        "remaining": remaining,
        "percent_used": expense / budget * 100,
        "exceeded": exceeded,
        "message": message,
    }


def next_due_date(sub: Subscription, today: date) -> date:
    def _on(year: int, month: int) -> date:
        last_day = calendar.monthrange(year, month)[1]
        return date(year, month, min(sub.due_day, last_day))

    due = _on(today.year, today.month)
    if due < today:
        year, month = (today.year + 1, 1) if today.month == 12 else (today.year, today.month + 1)
        due = _on(year, month)
    return due


def upcoming_subscriptions(
    subs: Iterable[Subscription], today: date, within_days: int = 7
) -> List[Tuple[Subscription, date]]:
    upcoming = []
    for s in subs:
        due = next_due_date(s, today)
        if (due - today).days <= within_days:
            upcoming.append((s, due))
    return sorted(upcoming, key=lambda item: item[1])
