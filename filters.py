from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy import ColumnElement

from models import Transaction, TransactionType
from periods import Window, resolve_month_window


@dataclass
class TransactionFilters:
    month: Optional[int] = None
    year: Optional[int] = None
    category: Optional[str] = None
    type: Optional[TransactionType] = None

    @property
    def window(self) -> Optional[Window]:
        return resolve_month_window(self.month, self.year)


@dataclass(frozen=True)
class TransactionQuery:
    """Conjunctive predicate over one owner's transactions; not yet executed."""

    owner_id: int
    window: Optional[Window] = None
    category: Optional[str] = None
    type: Optional[TransactionType] = None
    clauses: tuple[ColumnElement[bool], ...] = field(default=(), compare=False)


def build_transaction_query(
    owner_id: int,
    filters: Optional[TransactionFilters] = None,
    *,
    window: Optional[Window] = None,
) -> TransactionQuery:
    filters = filters or TransactionFilters()
    if window is None:
        window = filters.window

    clauses: list[ColumnElement[bool]] = [Transaction.user_id == owner_id]
    if window is not None:
        clauses.append(Transaction.date.between(window.start, window.end))
    if filters.category:
        clauses.append(Transaction.category == filters.category)
    if filters.type is not None:
        clauses.append(Transaction.type == filters.type)

    return TransactionQuery(
        owner_id=owner_id,
        window=window,
        category=filters.category or None,
        type=filters.type,
        clauses=tuple(clauses),
    )
