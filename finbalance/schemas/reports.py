import datetime as dt
from typing import Literal, Optional

from pydantic import BaseModel


class CategoryBreakdown(BaseModel):
    category: str
    amount: float


class HealthIndicator(BaseModel):
    status: str
    label: str
    message: str


class MonthlyReportResponse(BaseModel):
    month: str
    total_income: float
    total_expense: float
    balance: float
    credit_card_total: float
    category_breakdown: list[CategoryBreakdown]
    health: HealthIndicator


class RecentTransaction(BaseModel):
    id: int
    type: Literal["expense", "income"]
    description: str
    amount: float
    date: dt.date
    category: Optional[str] = None
