from functools import reduce
from typing import Dict, Iterable, List, Tuple

from fintrack.domain import (
    EXPENSE, INCOME,
    Goal, Investment, State, Subscription, Transaction,
)


def income_transactions(trans: Iterable[Transaction]) -> Tuple[Transaction, ...]:
    return tuple(filter(lambda t: t.type == INCOME, trans))


def expense_transactions(trans: Iterable[Transaction]) -> Tuple[Transaction, ...]:
    return tuple(filter(lambda t: t.type == EXPENSE, trans))


def _sum_amounts(trans: Iterable[Transaction]) -> float:
    return reduce(lambda acc, t: acc + t.amount, trans, 0.0)


def total_income(trans: Iterable[Transaction]) -> float:
    return _sum_amounts(income_transactions(trans))


def total_expense(trans: Iterable[Transaction]) -> float:
    return _sum_amounts(expense_transactions(trans))


def savings(trans: Iterable[Transaction]) -> float:
    """Income minus expense over the whole log. Negative means overspend."""
    trans = tuple(trans)
    return total_income(trans) - total_expense(trans)


def savings_ratio(income: float, saved: float) -> float:
    if income <= 0:
        return 0.0
    return saved / income * 100


def expenses_by_category(trans: Iterable[Transaction]) -> Dict[str, float]:
    """Sum expenses per category, keyed in first-seen order."""
    totals: Dict[str, float] = {}
    for t in expense_transactions(trans):
        totals[t.category] = totals.get(t.category, 0.0) + t.amount
    return totals


def top_categories(trans: Iterable[Transaction], k: int) -> List[Tuple[str, float]]:
    ordered = sorted(expenses_by_category(trans).items(), key=lambda item: item[1], reverse=True)
    return ordered[: max(0, k)]


def position_value(inv: Investment) -> float:
    return inv.qty * inv.current_price


def position_cost(inv: Investment) -> float:
    return inv.qty * inv.buy_price


def unrealized_pnl(inv: Investment) -> float:
    return position_value(inv) - position_cost(inv)


def position_return_pct(inv: Investment) -> float:
    cost = position_cost(inv)
    return unrealized_pnl(inv) / cost * 100 if cost > 0 else 0.0


def portfolio_value(investments: Iterable[Investment]) -> float:
    return sum(position_value(i) for i in investments)


def portfolio_cost(investments: Iterable[Investment]) -> float:
    return sum(position_cost(i) for i in investments)


def portfolio_pnl(investments: Iterable[Investment]) -> float:
    investments = tuple(investments)
    return portfolio_value(investments) - portfolio_cost(investments)


def burn_rate(subscriptions: Iterable[Subscription]) -> float:
    """Recurring monthly cost of all subscriptions."""
    return sum(s.amount for s in subscriptions)


def goal_completion_pct(goal: Goal) -> float:
    if goal.target <= 0:
        return 0.0
    return min(100.0, goal.current / goal.target * 100)


def net_worth(state: State) -> float:
    # cash spent on positions is already an expense, so holdings are added back at market value
    return savings(state.transactions) + portfolio_value(state.investments)


def summary(state: State) -> Dict[str, float]:
    income = total_income(state.transactions)
    expense = total_expense(state.transactions)
    saved = income - expense
    return {
        "income": income,
        "expense": expense,
        "savings": saved,
        "savings_ratio": savings_ratio(income, saved),
        "portfolio_value": portfolio_value(state.investments),
        "burn_rate": burn_rate(state.subscriptions),
        "net_worth": saved + portfolio_value(state.investments),
    }
