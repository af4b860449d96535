from decimal import Decimal

import pytest
from itsdangerous import URLSafeTimedSerializer
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from auth import current_user, issue_token, user_id_from_token
from database import Base
from errors import NotFound, Unauthenticated, ValidationFailed
from services import UserService


def make_session():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:", connect_args={"check_same_thread": False}
    )
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    return SessionLocal()


def test_token_round_trips_to_current_user():
    session = make_session()
    user = UserService(session).create("Alice", Decimal("250.00"))

    token = issue_token(user.id)
    me = current_user(session, token)

    assert me.id == user.id
    assert me.monthly_budget == Decimal("250.00")


def test_zero_budget_means_tracking_disabled():
    session = make_session()
    user = UserService(session).create("Alice", Decimal("0"))

    assert current_user(session, issue_token(user.id)).monthly_budget is None


@pytest.mark.parametrize("token", [None, "", "garbage", "a.b.c"])
def test_missing_or_malformed_tokens_are_rejected(token):
    with pytest.raises(Unauthenticated):
        user_id_from_token(token)


def test_token_signed_with_other_secret_is_rejected():
    forged = URLSafeTimedSerializer("not-the-secret", salt="finance-auth").dumps(
        {"u": 1}
    )
    with pytest.raises(Unauthenticated):
        user_id_from_token(forged)


def test_token_for_unknown_user_is_rejected():
    session = make_session()
    with pytest.raises(Unauthenticated):
        current_user(session, issue_token(404))


def test_budget_can_be_updated_and_cleared():
    session = make_session()
    users = UserService(session)
    user = users.create("Alice")
    assert user.monthly_budget is None

    users.set_monthly_budget(user.id, Decimal("300.50"))
    assert users.get(user.id).monthly_budget == Decimal("300.50")

    users.set_monthly_budget(user.id, Decimal("0"))
    assert users.get(user.id).monthly_budget is None


def test_budget_validation():
    session = make_session()
    users = UserService(session)
    user = users.create("Alice")

    with pytest.raises(ValidationFailed):
        users.set_monthly_budget(user.id, Decimal("-1"))
    with pytest.raises(NotFound):
        users.set_monthly_budget(999, Decimal("10"))
    with pytest.raises(ValidationFailed):
        users.create("   ")


def test_budget_beyond_storable_range_is_rejected():
    session = make_session()
    users = UserService(session)
    user = users.create("Alice")

    with pytest.raises(ValidationFailed) as excinfo:
        users.set_monthly_budget(user.id, Decimal("100000000000000000"))
    assert excinfo.value.errors[0]["field"] == "monthly_budget"
    with pytest.raises(ValidationFailed):
        users.create("Bob", Decimal("100000000000000000"))
    assert users.get(user.id).monthly_budget is None
