import datetime as dt
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from finbalance.core.constants import DataSource, ExpenseCategory, PaymentMethod


class ExpenseBase(BaseModel):
    description: str = Field(..., min_length=1)
    amount: float = Field(..., gt=0)
    category: ExpenseCategory = "Outros"
    payment_method: PaymentMethod = "débito"


class ExpenseCreate(ExpenseBase):
    user_id: str
    date: Optional[dt.date] = None


class ExpenseUpdate(BaseModel):
    description: Optional[str] = Field(None, min_length=1)
    amount: Optional[float] = Field(None, gt=0)
    category: Optional[ExpenseCategory] = None
    payment_method: Optional[PaymentMethod] = None
    date: Optional[dt.date] = None


class Expense(ExpenseBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    source: DataSource
    date: dt.date = Field(validation_alias=AliasChoices("date", "entry_date"))
    created_at: dt.datetime


class ExpenseList(BaseModel):
    items: list[Expense]
    total: int
    total_amount: float


class IncomeBase(BaseModel):
    description: str = Field(..., min_length=1)
    amount: float = Field(..., gt=0)


class IncomeCreate(IncomeBase):
    user_id: str
    date: Optional[dt.date] = None


class IncomeUpdate(BaseModel):
    description: Optional[str] = Field(None, min_length=1)
    amount: Optional[float] = Field(None, gt=0)
    date: Optional[dt.date] = None


class Income(IncomeBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    source: DataSource
    date: dt.date = Field(validation_alias=AliasChoices("date", "entry_date"))
    created_at: dt.datetime


class IncomeList(BaseModel):
    items: list[Income]
    total: int
    total_amount: float
