import logging
import math
from dataclasses import replace
from datetime import date
from typing import Any, Iterable, Optional, Tuple
from uuid import uuid4

from fintrack.aggregates import net_worth, savings
from fintrack.config import GOAL_CATEGORY, INVESTMENT_CATEGORY, NET_WORTH_HISTORY_LIMIT
from fintrack.domain import (
    EXPENSE, INCOME,
    Goal, GoalRequest, Investment, InvestmentRequest, NetWorthSample, State,
    Subscription, SubscriptionRequest, Transaction, TransactionRequest,
)
from fintrack.functional import Either, Right, failure, find_by_id
from fintrack.validation import (
    validate_goal, validate_investment, validate_price,
    validate_subscription, validate_transaction,
)

logger = logging.getLogger(__name__)

COLLECTIONS = ("transactions", "goals", "investments", "subscriptions", "netWorthHistory")


def new_id() -> str:
    return uuid4().hex


def _today() -> str:
    return date.today().isoformat()


# --- Normalization (applied once, when a snapshot is loaded or imported)

def to_number(value: Any) -> float:
    try:
        num = float(value)
    except (TypeError, ValueError):
        return 0.0
    return num if math.isfinite(num) else 0.0


def _pick(raw: dict, *keys: str, default: Any = None) -> Any:
    for k in keys:
        if k in raw and raw[k] is not None:
            return raw[k]
    return default


def _text(value: Any) -> str:
    return str(value).strip() if value is not None else ""


def normalize_type(value: Any) -> str:
    return INCOME if _text(value).lower() == INCOME else EXPENSE


def normalize_transaction(raw: Any) -> Optional[Transaction]:
    if not isinstance(raw, dict):
        return None
    amount = to_number(raw.get("amount"))
    if amount <= 0:
        return None
    return Transaction(
        id=_text(raw.get("id")) or new_id(),
        date=_text(_pick(raw, "date", "ts"))[:10],
        category=_text(raw.get("category")) or "Uncategorized",
        amount=amount,
        type=normalize_type(raw.get("type")),
        notes=_text(_pick(raw, "notes", "note", default="")),
    )


def normalize_goal(raw: Any) -> Optional[Goal]:
    if not isinstance(raw, dict):
        return None
    target = to_number(raw.get("target"))
    if target <= 0:
        return None
    deadline = _text(raw.get("deadline"))[:10] or None
    return Goal(
        id=_text(raw.get("id")) or new_id(),
        name=_text(raw.get("name")) or "Goal",
        target=target,
        current=min(max(to_number(raw.get("current")), 0.0), target),
        deadline=deadline,
    )


def normalize_investment(raw: Any) -> Optional[Investment]:
    if not isinstance(raw, dict):
        return None
    qty = to_number(raw.get("qty"))
    buy_price = to_number(_pick(raw, "buyPrice", "buy_price"))
    if qty <= 0 or buy_price <= 0:
        return None
    current = to_number(_pick(raw, "currentPrice", "current_price"))
    return Investment(
        id=_text(raw.get("id")) or new_id(),
        ticker=_text(raw.get("ticker")).upper() or "UNKNOWN",
        qty=qty,
        buy_price=buy_price,
        current_price=current if current > 0 else buy_price,
    )


def normalize_subscription(raw: Any) -> Optional[Subscription]:
    if not isinstance(raw, dict):
        return None
    amount = to_number(raw.get("amount"))
    if amount <= 0:
        return None
    due_day = int(to_number(_pick(raw, "dueDate", "due_day", default=1)))
    return Subscription(
        id=_text(raw.get("id")) or new_id(),
        name=_text(raw.get("name")) or "Subscription",
        amount=amount,
        due_day=min(max(due_day, 1), 31),
    )


def normalize_sample(raw: Any) -> Optional[NetWorthSample]:
    if not isinstance(raw, dict):
        return None
    return NetWorthSample(date=_text(raw.get("date"))[:10], value=to_number(raw.get("value")))


def _collect(items: Iterable[Any], normalize) -> tuple:
    return tuple(x for x in map(normalize, items) if x is not None)


def _legacy_transactions(raw: dict) -> Tuple[Transaction, ...]:
    """Older snapshots kept income as a running number next to expenseEntries."""
    entries = raw.get("expenseEntries") or []
    if not isinstance(entries, list):
        entries = []
    trans = _collect(({**e, "type": EXPENSE} if isinstance(e, dict) else e for e in entries), normalize_transaction)
    income = to_number(raw.get("income"))
    if income > 0:
        trans = (Transaction(id=new_id(), date="", category="Income", amount=income,
                             type=INCOME, notes="Migrated income balance"),) + trans
    return trans


def normalize_state(raw: Any) -> Either[dict, State]:
    """Turn a decoded snapshot into a State, or reject it as malformed.

    Missing collections default to empty. A collection that exists but is
    not a list means the snapshot is corrupt and nothing of it is kept.
    """
    if not isinstance(raw, dict):
        return failure("malformed_state", "Snapshot is not an object")
    for key in COLLECTIONS:
        if key in raw and raw[key] is not None and not isinstance(raw[key], list):
            return failure("malformed_state", f"Field {key!r} is not a list", field=key)

    if "transactions" in raw:
        trans = _collect(raw.get("transactions") or [], normalize_transaction)
    else:
        trans = _legacy_transactions(raw)

    history = _collect(raw.get("netWorthHistory") or [], normalize_sample)
    return Right(State(
        transactions=trans,
        budget=max(to_number(raw.get("budget")), 0.0),
        goals=_collect(raw.get("goals") or [], normalize_goal),
        investments=_collect(raw.get("investments") or [], normalize_investment),
        subscriptions=_collect(raw.get("subscriptions") or [], normalize_subscription),
        net_worth_history=history[-NET_WORTH_HISTORY_LIMIT:],
        theme="dark" if raw.get("theme") == "dark" else "light",
    ))


# --- Transactions

def _build_transaction(req: TransactionRequest, tx_id: str, fallback_date: str) -> Transaction:
    return Transaction(
        id=tx_id,
        date=(req.date or fallback_date)[:10],
        category=req.category.strip(),
        amount=float(req.amount),
        type=req.type,
        notes=(req.notes or "").strip(),
    )


def add_transaction(state: State, req: TransactionRequest) -> Either[dict, State]:
    return validate_transaction(req).map(
        lambda r: replace(state, transactions=state.transactions + (_build_transaction(r, new_id(), _today()),))
    )


def edit_transaction(state: State, tx_id: str, req: TransactionRequest) -> Either[dict, State]:
    found = find_by_id(state.transactions, tx_id)
    if found.is_none():
        return failure("not_found", f"Transaction {tx_id} does not exist", id=tx_id)
    old = found.get_or_else(None)

    def _apply(r: TransactionRequest) -> State:
        updated = _build_transaction(r, old.id, old.date)
        return replace(state, transactions=tuple(updated if t.id == tx_id else t for t in state.transactions))

    return validate_transaction(req).map(_apply)


def delete_transaction(state: State, tx_id: str) -> Either[dict, State]:
    remaining = tuple(t for t in state.transactions if t.id != tx_id)
    if len(remaining) == len(state.transactions):
        return failure("not_found", f"Transaction {tx_id} does not exist", id=tx_id)
    return Right(replace(state, transactions=remaining))


def import_transactions(state: State, trans: Iterable[Transaction]) -> Either[dict, State]:
    trans = tuple(trans)
    if not trans:
        return failure("empty_import", "No valid transactions found to import")
    return Right(replace(state, transactions=state.transactions + trans))


def clear_transactions(state: State) -> Either[dict, State]:
    return Right(replace(state, transactions=()))


# --- Budget

def set_budget(state: State, value: Any) -> Either[dict, State]:
    return Right(replace(state, budget=max(to_number(value), 0.0)))


# --- Goals

def add_goal(state: State, req: GoalRequest) -> Either[dict, State]:
    def _apply(r: GoalRequest) -> State:
        goal = Goal(
            id=new_id(),
            name=r.name.strip(),
            target=float(r.target),
            deadline=r.deadline[:10] if r.deadline else None,
        )
        return replace(state, goals=state.goals + (goal,))

    return validate_goal(req).map(_apply)


def delete_goal(state: State, goal_id: str) -> Either[dict, State]:
    remaining = tuple(g for g in state.goals if g.id != goal_id)
    if len(remaining) == len(state.goals):
        return failure("not_found", f"Goal {goal_id} does not exist", id=goal_id)
    return Right(replace(state, goals=remaining))


def contribute(state: State, goal_id: str, amount: Any, on: Optional[str] = None) -> Either[dict, State]:
    """Move money from savings into a goal.

    The contribution is recorded as an expense so savings drop by the same
    amount. Only what the goal still needs is taken.
    """
    found = find_by_id(state.goals, goal_id)
    if found.is_none():
        return failure("not_found", f"Goal {goal_id} does not exist", id=goal_id)
    goal = found.get_or_else(None)

    value = to_number(amount)
    available = savings(state.transactions)
    if value <= 0:
        return failure("invalid_amount", "Contribution must be greater than zero", amount=amount)
    if value > available:
        return failure(
            "insufficient_savings",
            f"Contribution {value:,.2f} exceeds available savings {available:,.2f}",
            amount=value,
            available=available,
        )
    if goal.completed:
        return failure("goal_completed", f"Goal {goal.name} is already reached", id=goal_id)

    applied = min(value, goal.target - goal.current)
    updated = replace(goal, current=min(goal.current + applied, goal.target))
    tx = Transaction(
        id=new_id(),
        date=(on or _today())[:10],
        category=GOAL_CATEGORY,
        amount=applied,
        type=EXPENSE,
        notes=f"Contribution to {goal.name}",
    )
    return Right(replace(
        state,
        goals=tuple(updated if g.id == goal_id else g for g in state.goals),
        transactions=state.transactions + (tx,),
    ))


# --- Investments

def buy_investment(state: State, req: InvestmentRequest) -> Either[dict, State]:
    def _apply(r: InvestmentRequest) -> State:
        qty, price = float(r.qty), float(r.buy_price)
        ticker = r.ticker.strip().upper()
        position = Investment(id=new_id(), ticker=ticker, qty=qty, buy_price=price, current_price=price)
        tx = Transaction(
            id=new_id(),
            date=(r.date or _today())[:10],
            category=INVESTMENT_CATEGORY,
            amount=qty * price,
            type=EXPENSE,
            notes=f"Bought {qty:g} {ticker} @ {price:,.2f}",
        )
        return replace(
            state,
            investments=state.investments + (position,),
            transactions=state.transactions + (tx,),
        )

    return validate_investment(req).map(_apply)


def sell_investment(state: State, inv_id: str, sell_price: Any, on: Optional[str] = None) -> Either[dict, State]:
    """Close a position in full. Partial sales are not supported."""
    found = find_by_id(state.investments, inv_id)
    if found.is_none():
        return failure("not_found", f"Investment {inv_id} does not exist", id=inv_id)
    inv = found.get_or_else(None)

    def _apply(price: float) -> State:
        proceeds = inv.qty * price
        pnl = proceeds - inv.qty * inv.buy_price
        tx = Transaction(
            id=new_id(),
            date=(on or _today())[:10],
            category=INVESTMENT_CATEGORY,
            amount=proceeds,
            type=INCOME,
            notes=f"Sold {inv.qty:g} {inv.ticker} @ {price:,.2f} (P&L: {pnl:+,.2f})",
        )
        return replace(
            state,
            investments=tuple(i for i in state.investments if i.id != inv_id),
            transactions=state.transactions + (tx,),
        )

    return validate_price(sell_price).map(_apply)


def update_price(state: State, inv_id: str, price: Any) -> Either[dict, State]:
    if find_by_id(state.investments, inv_id).is_none():
        return failure("not_found", f"Investment {inv_id} does not exist", id=inv_id)
    return validate_price(price).map(
        lambda p: replace(state, investments=tuple(
            replace(i, current_price=p) if i.id == inv_id else i for i in state.investments
        ))
    )


def delete_investment(state: State, inv_id: str) -> Either[dict, State]:
    """Drop a position without recording a sale, for fixing entry mistakes."""
    remaining = tuple(i for i in state.investments if i.id != inv_id)
    if len(remaining) == len(state.investments):
        return failure("not_found", f"Investment {inv_id} does not exist", id=inv_id)
    return Right(replace(state, investments=remaining))


# --- Subscriptions

def add_subscription(state: State, req: SubscriptionRequest) -> Either[dict, State]:
    return validate_subscription(req).map(
        lambda r: replace(state, subscriptions=state.subscriptions + (
            Subscription(id=new_id(), name=r.name.strip(), amount=float(r.amount), due_day=r.due_day),
        ))
    )


def delete_subscription(state: State, sub_id: str) -> Either[dict, State]:
    remaining = tuple(s for s in state.subscriptions if s.id != sub_id)
    if len(remaining) == len(state.subscriptions):
        return failure("not_found", f"Subscription {sub_id} does not exist", id=sub_id)
    return Right(replace(state, subscriptions=remaining))


# --- Net worth, theme, reset

def record_net_worth(state: State, on: str) -> Either[dict, State]:
    """Append today's net worth, replacing a sample already taken that day."""
    sample = NetWorthSample(date=on[:10], value=net_worth(state))
    history = state.net_worth_history
    if history and history[-1].date == sample.date:
        history = history[:-1]
    history = (history + (sample,))[-NET_WORTH_HISTORY_LIMIT:]
    return Right(replace(state, net_worth_history=history))


def set_theme(state: State, theme: str) -> Either[dict, State]:
    if theme not in ("light", "dark"):
        return failure("invalid_theme", f"Unknown theme {theme!r}", theme=theme)
    return Right(replace(state, theme=theme))


def toggle_theme(state: State) -> Either[dict, State]:
    return set_theme(state, "light" if state.theme == "dark" else "dark")


def reset_state(state: State) -> Either[dict, State]:
    logger.info("Resetting state to defaults")
    return Right(State())
