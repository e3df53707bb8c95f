from itertools import islice
from typing import Callable, Iterable, Iterator

from fintrack.domain import Transaction

Predicate = Callable[[Transaction], bool]


def by_category(category: str) -> Predicate:
    def _filter(t: Transaction) -> bool:
        return t.category == category

    return _filter


def by_type(kind: str) -> Predicate:
    def _filter(t: Transaction) -> bool:
        return t.type == kind

    return _filter


def by_date_range(start: str, end: str) -> Predicate:
    def _filter(t: Transaction) -> bool:
        return start <= t.date[:10] <= end

    return _filter


def by_month(month: str) -> Predicate:
    """month is YYYY-MM"""
    def _filter(t: Transaction) -> bool:
        return t.date.startswith(month)

    return _filter


def by_text(query: str) -> Predicate:
    needle = query.strip().lower()

    def _filter(t: Transaction) -> bool:
        if not needle:
            return True
        return needle in t.category.lower() or needle in t.notes.lower()

    return _filter


def all_of(*preds: Predicate) -> Predicate:
    def _filter(t: Transaction) -> bool:
        return all(p(t) for p in preds)

    return _filter


def iter_transactions(trans: Iterable[Transaction], pred: Predicate) -> Iterator[Transaction]:
    for t in trans:
        if pred(t):
            yield t


def sorted_by_date(trans: Iterable[Transaction], newest_first: bool = True) -> tuple[Transaction, ...]:
    return tuple(sorted(trans, key=lambda t: t.date, reverse=newest_first))


def recent_transactions(trans: Iterable[Transaction], n: int) -> tuple[Transaction, ...]:
    return tuple(islice(sorted_by_date(trans), max(0, n)))
