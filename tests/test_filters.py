from datetime import datetime
from decimal import Decimal

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from database import Base
from filters import TransactionFilters, build_transaction_query
from models import TransactionType
from periods import resolve_month_window
from services import TransactionService, UserService
from store import TransactionStore


def make_session():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:", connect_args={"check_same_thread": False}
    )
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    return SessionLocal()


def _seed(session):
    users = UserService(session)
    alice = users.create("Alice")
    bob = users.create("Bob")
    txns = TransactionService(session, alice.id)
    rows = [
        ("Lunch", "12.50", TransactionType.expense, "Food", datetime(2024, 3, 5, 12)),
        ("Bus", "2.80", TransactionType.expense, "Transport", datetime(2024, 3, 6, 8)),
        ("Salary", "1000", TransactionType.income, "Salary", datetime(2024, 3, 1, 9)),
        ("Dinner", "30", TransactionType.expense, "Food", datetime(2024, 4, 2, 19)),
    ]
    for title, amount, txn_type, category, when in rows:
        txns.create(
            {
                "title": title,
                "amount": amount,
                "type": txn_type,
                "category": category,
                "date": when,
            }
        )
    TransactionService(session, bob.id).create(
        {
            "title": "Bob lunch",
            "amount": "9",
            "type": "expense",
            "category": "Food",
            "date": datetime(2024, 3, 5, 12, 0),
        }
    )
    return alice, bob


def test_absent_filters_only_scope_owner():
    query = build_transaction_query(7)
    assert query.owner_id == 7
    assert query.window is None
    assert query.category is None
    assert query.type is None
    assert len(query.clauses) == 1


def test_empty_category_is_treated_as_absent():
    query = build_transaction_query(7, TransactionFilters(category=""))
    assert query.category is None
    assert len(query.clauses) == 1


def test_month_without_year_adds_no_date_bound():
    query = build_transaction_query(7, TransactionFilters(month=3))
    assert query.window is None
    assert len(query.clauses) == 1


def test_all_filters_are_combined():
    filters = TransactionFilters(
        month=3, year=2024, category="Food", type=TransactionType.expense
    )
    query = build_transaction_query(7, filters)
    assert query.window == resolve_month_window(3, 2024)
    assert query.category == "Food"
    assert query.type == TransactionType.expense
    assert len(query.clauses) == 4


def test_filters_are_conjunctive_when_executed():
    session = make_session()
    alice, _ = _seed(session)
    store = TransactionStore(session)

    march_food = store.find(
        build_transaction_query(
            alice.id, TransactionFilters(month=3, year=2024, category="Food")
        )
    )
    assert [t.title for t in march_food] == ["Lunch"]

    march_expenses = store.find(
        build_transaction_query(
            alice.id,
            TransactionFilters(month=3, year=2024, type=TransactionType.expense),
        )
    )
    assert {t.title for t in march_expenses} == {"Lunch", "Bus"}

    all_food = store.find(
        build_transaction_query(alice.id, TransactionFilters(category="Food"))
    )
    assert [t.title for t in all_food] == ["Dinner", "Lunch"]


def test_listing_is_owner_scoped_and_sorted_by_date_desc():
    session = make_session()
    alice, bob = _seed(session)

    items = TransactionService(session, alice.id).list()
    assert [t.title for t in items] == ["Dinner", "Bus", "Lunch", "Salary"]
    assert all(t.user_id == alice.id for t in items)

    bob_items = TransactionService(session, bob.id).list()
    assert [t.title for t in bob_items] == ["Bob lunch"]
    assert bob_items[0].amount == Decimal("9.00")


def test_out_of_range_year_filters_everything_out():
    session = make_session()
    alice, _ = _seed(session)

    query = build_transaction_query(alice.id, TransactionFilters(month=3, year=10000))
    assert query.window is not None
    assert TransactionStore(session).find(query) == []
