from typing import Any, Callable, Dict, Optional, Sequence

from fintrack.aggregates import (
    expenses_by_category, goal_completion_pct, portfolio_pnl, portfolio_value,
    position_value, summary, unrealized_pnl, burn_rate,
)
from fintrack.domain import State
from fintrack.filters import recent_transactions
from fintrack.insights import health_label, health_score, insight_message

Validator = Callable[[State], Sequence[str]]
Calculator = Callable[[State, Dict[str, Any]], Dict[str, Any]]


def validate_has_transactions(state: State) -> Sequence[str]:
    return [] if state.transactions else ["No transactions recorded"]


def validate_budget_set(state: State) -> Sequence[str]:
    return [] if state.budget > 0 else ["No budget set"]


def calc_totals(state: State, acc: Dict[str, Any]) -> Dict[str, Any]:
    totals = summary(state)
    score = health_score(totals["income"], totals["expense"], totals["savings"], state.budget)
    return {"totals": totals, "health": {"score": score, "label": health_label(score)}}


def calc_categories(state: State, acc: Dict[str, Any]) -> Dict[str, Any]:
    categories = expenses_by_category(state.transactions)
    totals = acc.get("totals") or summary(state)
    insight = insight_message(totals["income"], totals["expense"], totals["savings"], state.budget, categories)
    return {"categories": categories, "insight": insight}


def calc_goals(state: State, acc: Dict[str, Any]) -> Dict[str, Any]:
    return {"goals": [
        {"name": g.name, "current": g.current, "target": g.target,
         "progress": goal_completion_pct(g), "deadline": g.deadline, "completed": g.completed}
        for g in state.goals
    ]}


def calc_investments(state: State, acc: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "investments": [
            {"ticker": i.ticker, "qty": i.qty, "buy_price": i.buy_price,
             "current_price": i.current_price, "value": position_value(i), "pnl": unrealized_pnl(i)}
            for i in state.investments
        ],
        "portfolio": {"value": portfolio_value(state.investments), "pnl": portfolio_pnl(state.investments)},
    }


def calc_subscriptions(state: State, acc: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "subscriptions": [{"name": s.name, "amount": s.amount, "due_day": s.due_day} for s in state.subscriptions],
        "burn_rate": burn_rate(state.subscriptions),
    }


def recent_calculator(n: int = 10) -> Calculator:
    def calc_recent(state: State, acc: Dict[str, Any]) -> Dict[str, Any]:
        return {"recent": [
            {"date": t.date, "category": t.category, "amount": t.amount, "type": t.type, "notes": t.notes}
            for t in recent_transactions(state.transactions, n)
        ]}

    return calc_recent


DEFAULT_CALCULATORS: Sequence[Calculator] = (
    calc_totals, calc_categories, calc_goals, calc_investments, calc_subscriptions, recent_calculator(),
)


class ReportService:
    """Collects the inputs a printable report needs.

    validators: functions taking a State and returning warning messages
    calculators: functions taking (state, partial result) and returning a dict merged into the result
    """

    def __init__(
        self,
        calculators: Optional[Sequence[Calculator]] = None,
        validators: Optional[Sequence[Validator]] = None,
    ):
        self.calculators = DEFAULT_CALCULATORS if calculators is None else calculators
        self.validators = (validate_has_transactions, validate_budget_set) if validators is None else validators

    def build(self, state: State) -> Dict[str, Any]:
        report: Dict[str, Any] = {"validation": [], "steps": [], "result": {}}

        for v in self.validators:
            report["validation"].append({"validator": getattr(v, "__name__", str(v)), "messages": list(v(state))})

        acc: Dict[str, Any] = {}
        for calc in self.calculators:
            out = calc(state, acc)
            report["steps"].append({"calculator": getattr(calc, "__name__", str(calc)), "output": out})
            if isinstance(out, dict):
                acc.update(out)

        report["result"] = acc
        return report
