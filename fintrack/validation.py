import math
from datetime import date
from typing import Optional

from fintrack.domain import (
    EXPENSE, INCOME,
    GoalRequest, InvestmentRequest, SubscriptionRequest, TransactionRequest,
)
from fintrack.functional import Either, Right, failure


def _is_blank(value) -> bool:
    return not isinstance(value, str) or not value.strip()


def _valid_date(value: Optional[str]) -> bool:
    if value is None:
        return True
    try:
        date.fromisoformat(str(value)[:10])
    except ValueError:
        return False
    return True


def _positive(value) -> bool:
    try:
        num = float(value)
    except (TypeError, ValueError):
        return False
    return math.isfinite(num) and num > 0


def validate_transaction(req: TransactionRequest) -> Either[dict, TransactionRequest]:
    if _is_blank(req.category):
        return failure("empty_field", "Category is required", field="category")
    if not _positive(req.amount):
        return failure("invalid_amount", "Amount must be greater than zero", amount=req.amount)
    if req.type not in (INCOME, EXPENSE):
        return failure("invalid_type", f"Unknown transaction type {req.type!r}", type=req.type)
    if not _valid_date(req.date):
        return failure("invalid_date", f"Cannot parse date {req.date!r}", date=req.date)
    return Right(req)


def validate_goal(req: GoalRequest) -> Either[dict, GoalRequest]:
    if _is_blank(req.name):
        return failure("empty_field", "Goal name is required", field="name")
    if not _positive(req.target):
        return failure("invalid_amount", "Goal target must be greater than zero", amount=req.target)
    if not _valid_date(req.deadline):
        return failure("invalid_date", f"Cannot parse deadline {req.deadline!r}", date=req.deadline)
    return Right(req)


def validate_investment(req: InvestmentRequest) -> Either[dict, InvestmentRequest]:
    if _is_blank(req.ticker):
        return failure("empty_field", "Ticker is required", field="ticker")
    if not _positive(req.qty):
        return failure("invalid_quantity", "Quantity must be greater than zero", qty=req.qty)
    if not _positive(req.buy_price):
        return failure("invalid_price", "Buy price must be greater than zero", price=req.buy_price)
    if not _valid_date(req.date):
        return failure("invalid_date", f"Cannot parse date {req.date!r}", date=req.date)
    return Right(req)


def validate_subscription(req: SubscriptionRequest) -> Either[dict, SubscriptionRequest]:
    if _is_blank(req.name):
        return failure("empty_field", "Subscription name is required", field="name")
    if not _positive(req.amount):
        return failure("invalid_amount", "Amount must be greater than zero", amount=req.amount)
    if not isinstance(req.due_day, int) or not 1 <= req.due_day <= 31:
        return failure("invalid_due_day", "Due day must be between 1 and 31", due_day=req.due_day)
    return Right(req)


def validate_price(price) -> Either[dict, float]:
    if not _positive(price):
        return failure("invalid_price", "Price must be greater than zero", price=price)
    return Right(float(price))
