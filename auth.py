from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from sqlalchemy.orm import Session

from config import get_settings
from errors import Unauthenticated
from services import UserService


@dataclass(frozen=True)
class CurrentUser:
    id: int
    monthly_budget: Optional[Decimal] = None


def _serializer() -> URLSafeTimedSerializer:
    settings = get_settings()
    return URLSafeTimedSerializer(settings.token_secret, salt="finance-auth")


def issue_token(user_id: int) -> str:
    return _serializer().dumps({"u": user_id})


def user_id_from_token(token: Optional[str]) -> int:
    if not token:
        raise Unauthenticated("Not authorized, no token")
    max_age = get_settings().token_max_age_hours * 3600
    try:
        data = _serializer().loads(token, max_age=max_age)
    except SignatureExpired as exc:
        raise Unauthenticated("Not authorized, token expired") from exc
    except BadSignature as exc:
        raise Unauthenticated("Not authorized, token failed") from exc

    user_id = data.get("u") if isinstance(data, dict) else None
    if not isinstance(user_id, int):
        raise Unauthenticated("Not authorized, token failed")
    return user_id


def current_user(session: Session, token: Optional[str]) -> CurrentUser:
    user = UserService(session).get(user_id_from_token(token))
    if user is None:
        raise Unauthenticated("Not authorized, user not found")
    return CurrentUser(id=user.id, monthly_budget=user.monthly_budget)
