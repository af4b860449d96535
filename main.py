import logging
from datetime import datetime
from typing import Any, Optional

from fastapi import Body, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from auth import CurrentUser, current_user
from config import get_settings
from database import get_db
from errors import FinanceError, ValidationFailed
from filters import TransactionFilters
from periods import resolve_month_window
from schemas import (
    BudgetIn,
    CategoryStatOut,
    SummaryOut,
    TransactionOut,
    TransactionQueryIn,
    UserOut,
    WindowQueryIn,
)
from services import CategoryService, SummaryService, TransactionService, UserService


logging.basicConfig(level=get_settings().log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="Finance Tracker")


@app.exception_handler(FinanceError)
async def finance_error_handler(request: Request, exc: FinanceError) -> JSONResponse:
    body: dict[str, object] = {"message": exc.message}
    if isinstance(exc, ValidationFailed):
        body["errors"] = exc.errors
    return JSONResponse(status_code=exc.status_code, content=body)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return await finance_error_handler(request, ValidationFailed.from_pydantic(exc))


def _query_params(request: Request) -> dict[str, str]:
    return {key: value for key, value in request.query_params.items() if value != ""}


def filters_from_request(request: Request) -> TransactionFilters:
    try:
        params = TransactionQueryIn.model_validate(_query_params(request))
    except ValidationError as exc:
        raise ValidationFailed.from_pydantic(exc) from exc
    return TransactionFilters(
        month=params.month,
        year=params.year,
        category=params.category,
        type=params.type,
    )


def window_params_from_request(request: Request) -> WindowQueryIn:
    try:
        return WindowQueryIn.model_validate(_query_params(request))
    except ValidationError as exc:
        raise ValidationFailed.from_pydantic(exc) from exc


def bearer_token(request: Request) -> Optional[str]:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


def get_current_user(request: Request, db: Session = Depends(get_db)) -> CurrentUser:
    return current_user(db, bearer_token(request))


@app.get("/api/health")
def health(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
        database = "connected"
    except SQLAlchemyError:
        logger.warning("health_check: database=disconnected")
        database = "disconnected"
    return {
        "status": "ok",
        "server": "running",
        "database": database,
        "timestamp": datetime.utcnow().isoformat(),
    }


@app.get("/api/transactions", response_model=list[TransactionOut])
def list_transactions(
    request: Request,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    filters = filters_from_request(request)
    items = TransactionService(db, user.id).list(filters)
    return [TransactionOut.model_validate(txn) for txn in items]


@app.get("/api/transactions/summary", response_model=SummaryOut)
def transaction_summary(
    request: Request,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    params = window_params_from_request(request)
    summary = SummaryService(db, user.id).for_month(
        params.month, params.year, monthly_budget=user.monthly_budget
    )
    return SummaryOut.model_validate(summary)


@app.get("/api/transactions/{transaction_id}", response_model=TransactionOut)
def get_transaction(
    transaction_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    txn = TransactionService(db, user.id).get(transaction_id)
    return TransactionOut.model_validate(txn)


@app.post("/api/transactions", response_model=TransactionOut, status_code=201)
def create_transaction(
    payload: dict[str, Any] = Body(...),
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    txn = TransactionService(db, user.id).create(payload)
    return TransactionOut.model_validate(txn)


@app.put("/api/transactions/{transaction_id}", response_model=TransactionOut)
def update_transaction(
    transaction_id: int,
    payload: dict[str, Any] = Body(...),
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    txn = TransactionService(db, user.id).update(transaction_id, payload)
    return TransactionOut.model_validate(txn)


@app.delete("/api/transactions/{transaction_id}")
def delete_transaction(
    transaction_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    TransactionService(db, user.id).delete(transaction_id)
    return {"message": "Transaction removed"}


@app.get("/api/categories", response_model=list[str])
def list_categories(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return CategoryService(db, user.id).list_all()


@app.get("/api/categories/stats", response_model=list[CategoryStatOut])
def category_stats(
    request: Request,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    params = window_params_from_request(request)
    window = resolve_month_window(params.month, params.year)
    stats = CategoryService(db, user.id).stats(window)
    return [CategoryStatOut.model_validate(stat) for stat in stats]


@app.put("/api/users/me/budget", response_model=UserOut)
def update_budget(
    payload: BudgetIn,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    updated = UserService(db).set_monthly_budget(user.id, payload.monthly_budget)
    return UserOut.model_validate(updated)
