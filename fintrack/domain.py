from dataclasses import dataclass
from typing import Optional

INCOME = "income"
EXPENSE = "expense"


@dataclass(frozen=True)
class Transaction:
    id: str
    date: str        # "2025-09-01"
    category: str
    amount: float    # always > 0, sign comes from type
    type: str        # "income" or "expense"
    notes: str = ""


@dataclass(frozen=True)
class Goal:
    id: str
    name: str
    target: float
    current: float = 0.0
    deadline: Optional[str] = None

    @property
    def completed(self) -> bool:
        return self.current >= self.target


@dataclass(frozen=True)
class Investment:
    id: str
    ticker: str
    qty: float
    buy_price: float
    current_price: float


@dataclass(frozen=True)
class Subscription:
    id: str
    name: str
    amount: float
    due_day: int     # day of month, 1..31


@dataclass(frozen=True)
class NetWorthSample:
    date: str
    value: float


@dataclass(frozen=True)
class State:
    transactions: tuple[Transaction, ...] = ()
    budget: float = 0.0
    goals: tuple[Goal, ...] = ()
    investments: tuple[Investment, ...] = ()
    subscriptions: tuple[Subscription, ...] = ()
    net_worth_history: tuple[NetWorthSample, ...] = ()
    theme: str = "light"


# Typed input requests, validated before any reducer touches the state

@dataclass(frozen=True)
class TransactionRequest:
    category: str
    amount: float
    type: str = EXPENSE
    date: Optional[str] = None
    notes: str = ""


@dataclass(frozen=True)
class GoalRequest:
    name: str
    target: float
    deadline: Optional[str] = None


@dataclass(frozen=True)
class InvestmentRequest:
    ticker: str
    qty: float
    buy_price: float
    date: Optional[str] = None


@dataclass(frozen=True)
class SubscriptionRequest:
    name: str
    amount: float
    due_day: int = 1
