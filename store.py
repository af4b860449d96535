from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, NamedTuple, Optional

from sqlalchemy import distinct, extract, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from errors import NotFound, StoreUnavailable
from filters import TransactionQuery
from models import Transaction, TransactionType


logger = logging.getLogger(__name__)

MUTABLE_FIELDS = ("title", "amount_cents", "type", "category", "date", "description")


class MonthlyTotalRow(NamedTuple):
    year: int
    month: int
    type: TransactionType
    total_cents: int


class CategoryStatRow(NamedTuple):
    category: str
    total_cents: int
    transaction_count: int


class TransactionStore:
    """Persistence surface for transactions.

    Every call is a fresh query against the database; single-record writes
    commit on their own. SQLAlchemy failures surface as ``StoreUnavailable``.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    @contextmanager
    def _guard(self, operation: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.warning(f"store_failure: operation={operation} error={exc}")
            raise StoreUnavailable(
                f"Transaction store unavailable ({operation})"
            ) from exc

    def find(self, query: TransactionQuery) -> list[Transaction]:
        stmt = (
            select(Transaction)
            .where(*query.clauses)
            .order_by(Transaction.date.desc(), Transaction.id.desc())
        )
        with self._guard("find"):
            return list(self.session.scalars(stmt).all())

    def find_by_id(self, transaction_id: int) -> Optional[Transaction]:
        with self._guard("find_by_id"):
            return self.session.get(Transaction, transaction_id)

    def insert(self, txn: Transaction) -> Transaction:
        with self._guard("insert"):
            self.session.add(txn)
            self.session.commit()
            self.session.refresh(txn)
        return txn

    def replace(self, transaction_id: int, replacement: Transaction) -> Transaction:
        with self._guard("replace"):
            current = self.session.get(Transaction, transaction_id)
            if current is None:
                raise NotFound("Transaction not found")
            for name in MUTABLE_FIELDS:
                setattr(current, name, getattr(replacement, name))
            self.session.commit()
            self.session.refresh(current)
        return current

    def remove(self, transaction_id: int) -> None:
        with self._guard("remove"):
            txn = self.session.get(Transaction, transaction_id)
            if txn is not None:
                self.session.delete(txn)
                self.session.commit()

    def distinct_categories(self, owner_id: int) -> list[str]:
        stmt = (
            select(distinct(Transaction.category))
            .where(Transaction.user_id == owner_id)
            .order_by(Transaction.category)
        )
        with self._guard("distinct_categories"):
            return list(self.session.scalars(stmt).all())

    def monthly_totals(self, owner_id: int) -> list[MonthlyTotalRow]:
        year = extract("year", Transaction.date).label("year")
        month = extract("month", Transaction.date).label("month")
        stmt = (
            select(
                year,
                month,
                Transaction.type,
                func.coalesce(func.sum(Transaction.amount_cents), 0).label("total"),
            )
            .where(Transaction.user_id == owner_id)
            .group_by(year, month, Transaction.type)
            .order_by(year, month)
        )
        with self._guard("monthly_totals"):
            rows = self.session.execute(stmt).all()
        return [
            MonthlyTotalRow(int(row.year), int(row.month), row.type, int(row.total))
            for row in rows
        ]

    def category_stats(self, query: TransactionQuery) -> list[CategoryStatRow]:
        total = func.coalesce(func.sum(Transaction.amount_cents), 0).label("total")
        stmt = (
            select(
                Transaction.category,
                total,
                func.count(Transaction.id).label("txn_count"),
            )
            .where(*query.clauses, Transaction.type == TransactionType.expense)
            .group_by(Transaction.category)
            .order_by(total.desc(), Transaction.category)
        )
        with self._guard("category_stats"):
            rows = self.session.execute(stmt).all()
        return [
            CategoryStatRow(row.category, int(row.total), int(row.txn_count))
            for row in rows
        ]
