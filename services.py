from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional, Union

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from errors import Forbidden, NotFound, StoreUnavailable, ValidationFailed
from filters import TransactionFilters, build_transaction_query
from models import MAX_AMOUNT, Transaction, TransactionType, User, cents_to_amount
from periods import Window, resolve_month_window
from schemas import TransactionIn
from store import TransactionStore


logger = logging.getLogger(__name__)

ZERO = Decimal("0")

TransactionFields = Union[TransactionIn, Mapping[str, Any]]


@dataclass(frozen=True)
class MonthlyTotal:
    year: int
    month: int
    type: TransactionType
    total: Decimal


@dataclass(frozen=True)
class BudgetSnapshot:
    monthly_budget: Decimal
    spent: Decimal

    @property
    def remaining(self) -> Decimal:
        return self.monthly_budget - self.spent

    @property
    def exceeded(self) -> bool:
        return self.spent > self.monthly_budget


@dataclass
class Summary:
    total_income: Decimal = ZERO
    total_expenses: Decimal = ZERO
    category_breakdown: dict[str, Decimal] = field(default_factory=dict)
    monthly_data: list[MonthlyTotal] = field(default_factory=list)
    budget: Optional[BudgetSnapshot] = None

    @property
    def balance(self) -> Decimal:
        return self.total_income - self.total_expenses


@dataclass(frozen=True)
class CategoryStat:
    category: str
    total: Decimal
    count: int


def validate_transaction(fields: TransactionFields) -> TransactionIn:
    if isinstance(fields, TransactionIn):
        return fields
    try:
        return TransactionIn.model_validate(dict(fields))
    except ValidationError as exc:
        raise ValidationFailed.from_pydantic(exc) from exc


class TransactionService:
    """Create, update, delete and list one owner's transactions.

    None of these operations touch summaries; callers ask ``SummaryService``
    for a fresh one after a mutation.
    """

    def __init__(self, session: Session, user_id: int) -> None:
        self.session = session
        self.user_id = user_id
        self.store = TransactionStore(session)

    def _owned(self, transaction_id: int) -> Transaction:
        txn = self.store.find_by_id(transaction_id)
        if txn is None:
            raise NotFound("Transaction not found")
        if txn.user_id != self.user_id:
            raise Forbidden("Not authorized")
        return txn

    def list(self, filters: Optional[TransactionFilters] = None) -> list[Transaction]:
        query = build_transaction_query(self.user_id, filters)
        return self.store.find(query)

    def get(self, transaction_id: int) -> Transaction:
        return self._owned(transaction_id)

    def create(self, fields: TransactionFields) -> Transaction:
        data = validate_transaction(fields)
        txn = Transaction(
            user_id=self.user_id,
            title=data.title,
            amount_cents=data.amount_cents,
            type=data.type,
            category=data.category,
            date=data.date or datetime.utcnow(),
            description=data.description,
        )
        txn = self.store.insert(txn)
        logger.info(
            f"transaction_created: owner={self.user_id} id={txn.id} "
            f"type={txn.type.value}"
        )
        return txn

    def update(self, transaction_id: int, fields: TransactionFields) -> Transaction:
        existing = self._owned(transaction_id)
        data = validate_transaction(fields)
        replacement = Transaction(
            title=data.title,
            amount_cents=data.amount_cents,
            type=data.type,
            category=data.category,
            date=data.date or existing.date,
            description=data.description,
        )
        txn = self.store.replace(existing.id, replacement)
        logger.info(f"transaction_updated: owner={self.user_id} id={txn.id}")
        return txn

    def delete(self, transaction_id: int) -> None:
        existing = self._owned(transaction_id)
        self.store.remove(existing.id)
        logger.info(f"transaction_deleted: owner={self.user_id} id={transaction_id}")


class SummaryService:
    def __init__(self, session: Session, user_id: int) -> None:
        self.session = session
        self.user_id = user_id
        self.store = TransactionStore(session)

    def compute(self, window: Optional[Window] = None) -> Summary:
        """Recompute totals for ``window`` from scratch.

        Income/expense totals and the expense category breakdown honour the
        window. The monthly series always spans the owner's whole history.
        """
        query = build_transaction_query(self.user_id, window=window)
        income = ZERO
        expenses = ZERO
        breakdown: dict[str, Decimal] = defaultdict(Decimal)
        for txn in self.store.find(query):
            amount = txn.amount
            if txn.type == TransactionType.income:
                income += amount
            else:
                expenses += amount
                breakdown[txn.category] += amount

        monthly = [
            MonthlyTotal(
                row.year, row.month, row.type, cents_to_amount(row.total_cents)
            )
            for row in self.store.monthly_totals(self.user_id)
        ]
        logger.debug(
            f"summary_computed: owner={self.user_id} window={window} "
            f"months={len(monthly)}"
        )
        return Summary(
            total_income=income,
            total_expenses=expenses,
            category_breakdown=dict(breakdown),
            monthly_data=monthly,
        )

    def for_month(
        self,
        month: Optional[int] = None,
        year: Optional[int] = None,
        *,
        monthly_budget: Optional[Decimal] = None,
    ) -> Summary:
        summary = self.compute(resolve_month_window(month, year))
        if monthly_budget:
            summary.budget = BudgetSnapshot(monthly_budget, summary.total_expenses)
        return summary


class CategoryService:
    def __init__(self, session: Session, user_id: int) -> None:
        self.session = session
        self.user_id = user_id
        self.store = TransactionStore(session)

    def list_all(self) -> list[str]:
        return self.store.distinct_categories(self.user_id)

    def stats(self, window: Optional[Window] = None) -> list[CategoryStat]:
        query = build_transaction_query(self.user_id, window=window)
        return [
            CategoryStat(
                row.category,
                cents_to_amount(row.total_cents),
                row.transaction_count,
            )
            for row in self.store.category_stats(query)
        ]


class UserService:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, user_id: int) -> Optional[User]:
        try:
            return self.session.get(User, user_id)
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StoreUnavailable("User store unavailable") from exc

    def create(self, name: str, monthly_budget: Optional[Decimal] = None) -> User:
        clean_name = name.strip()
        if not clean_name:
            raise ValidationFailed.for_field("name", "Name is required")
        user = User(name=clean_name, monthly_budget_cents=_budget_cents(monthly_budget))
        try:
            self.session.add(user)
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StoreUnavailable("User store unavailable") from exc
        self.session.refresh(user)
        logger.info(f"user_created: id={user.id}")
        return user

    def set_monthly_budget(self, user_id: int, monthly_budget: Decimal) -> User:
        user = self.get(user_id)
        if user is None:
            raise NotFound("User not found")
        user.monthly_budget_cents = _budget_cents(monthly_budget)
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StoreUnavailable("User store unavailable") from exc
        self.session.refresh(user)
        logger.info(
            f"budget_updated: user={user_id} budget_cents={user.monthly_budget_cents}"
        )
        return user


def _budget_cents(monthly_budget: Optional[Decimal]) -> Optional[int]:
    if monthly_budget is None:
        return None
    amount = Decimal(monthly_budget)
    if amount < 0:
        raise ValidationFailed.for_field(
            "monthly_budget", "Monthly budget must not be negative"
        )
    if amount > MAX_AMOUNT:
        raise ValidationFailed.for_field(
            "monthly_budget", f"Monthly budget must not exceed {MAX_AMOUNT}"
        )
    return int((amount * 100).quantize(Decimal("1")))
