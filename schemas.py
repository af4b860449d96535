from datetime import MAXYEAR, MINYEAR, date, datetime, time, timezone
from decimal import Decimal
from typing import Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
)

from models import MAX_AMOUNT, TransactionType


def _money(value: Decimal) -> float:
    return float(value.quantize(Decimal("0.01")))


def _require_text(value: str, label: str) -> str:
    if not value or not value.strip():
        raise ValueError(f"{label} is required")
    return value


class TransactionIn(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: str = Field(..., max_length=200)
    amount: Decimal = Field(..., gt=0, le=MAX_AMOUNT, decimal_places=2)
    type: TransactionType
    category: str = Field(..., max_length=100)
    date: Optional[datetime] = None
    description: Optional[str] = None

    @field_validator("title")
    @classmethod
    def _title_present(cls, value: str) -> str:
        return _require_text(value, "Title")

    @field_validator("category")
    @classmethod
    def _category_present(cls, value: str) -> str:
        return _require_text(value, "Category")

    @field_validator("date", mode="before")
    @classmethod
    def _date_only(cls, value: object) -> object:
        if isinstance(value, date) and not isinstance(value, datetime):
            return datetime.combine(value, time.min)
        if isinstance(value, str) and len(value.strip()) == 10:
            return f"{value.strip()}T00:00:00"
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("date")
    @classmethod
    def _naive_date(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is not None:
            return value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    @property
    def amount_cents(self) -> int:
        return int(self.amount * 100)


class TransactionQueryIn(BaseModel):
    month: Optional[int] = Field(default=None, ge=1, le=12)
    year: Optional[int] = Field(default=None, ge=MINYEAR, le=MAXYEAR)
    category: Optional[str] = Field(default=None, max_length=100)
    type: Optional[TransactionType] = None


class WindowQueryIn(BaseModel):
    month: Optional[int] = Field(default=None, ge=1, le=12)
    year: Optional[int] = Field(default=None, ge=MINYEAR, le=MAXYEAR)


class BudgetIn(BaseModel):
    monthly_budget: Decimal = Field(
        ...,
        ge=0,
        le=MAX_AMOUNT,
        decimal_places=2,
        validation_alias=AliasChoices("monthly_budget", "monthlyBudget"),
    )


class TransactionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    owner: int = Field(validation_alias=AliasChoices("user_id", "owner"))
    title: str
    amount: Decimal
    type: TransactionType
    category: str
    date: datetime
    description: Optional[str] = None

    @field_serializer("amount")
    def _amount(self, value: Decimal) -> float:
        return _money(value)


class MonthlyPoint(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    year: int
    month: int
    type: TransactionType
    total: Decimal

    @field_serializer("total")
    def _total(self, value: Decimal) -> float:
        return _money(value)


class BudgetStatus(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    monthly_budget: Decimal = Field(alias="monthlyBudget")
    spent: Decimal
    remaining: Decimal
    exceeded: bool

    @field_serializer("monthly_budget", "spent", "remaining")
    def _amounts(self, value: Decimal) -> float:
        return _money(value)


class SummaryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    total_income: Decimal = Field(alias="totalIncome")
    total_expenses: Decimal = Field(alias="totalExpenses")
    balance: Decimal
    category_breakdown: dict[str, Decimal] = Field(alias="categoryBreakdown")
    monthly_data: list[MonthlyPoint] = Field(alias="monthlyData")
    budget: Optional[BudgetStatus] = None

    @field_serializer("total_income", "total_expenses", "balance")
    def _totals(self, value: Decimal) -> float:
        return _money(value)

    @field_serializer("category_breakdown")
    def _breakdown(self, value: dict[str, Decimal]) -> dict[str, float]:
        return {name: _money(amount) for name, amount in value.items()}


class CategoryStatOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    category: str
    total: Decimal
    count: int

    @field_serializer("total")
    def _total(self, value: Decimal) -> float:
        return _money(value)


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    name: str
    monthly_budget: Optional[Decimal] = Field(default=None, alias="monthlyBudget")

    @field_serializer("monthly_budget")
    def _budget(self, value: Optional[Decimal]) -> Optional[float]:
        return _money(value) if value is not None else None
