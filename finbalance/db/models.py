from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Enum,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from finbalance.core.constants import (
    DATA_SOURCES,
    DEFAULT_PAYMENT_METHOD,
    EXPENSE_CATEGORIES,
    MANUAL_EXPENSE_CATEGORY,
    PARSED_TYPES,
    PAYMENT_METHODS,
)
from finbalance.db.base import Base

JSONType = JSON(none_as_null=True).with_variant(JSONB(none_as_null=True), "postgresql")

expense_category_enum = Enum(*EXPENSE_CATEGORIES, name="expense_category")
payment_method_enum = Enum(*PAYMENT_METHODS, name="payment_method")
parsed_type_enum = Enum(*PARSED_TYPES, name="parsed_type")
data_source_enum = Enum(*DATA_SOURCES, name="data_source")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )


class Profile(Base, TimestampMixin):
    __tablename__ = "profiles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(String(36), unique=True, index=True)
    full_name: Mapped[str | None] = mapped_column(String(255))
    email: Mapped[str | None] = mapped_column(String(255))
    phone_number: Mapped[str | None] = mapped_column(String(32), index=True)


class Expense(Base, TimestampMixin):
    __tablename__ = "expenses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(String(36), index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(), nullable=False)
    category: Mapped[str] = mapped_column(
        expense_category_enum, default=MANUAL_EXPENSE_CATEGORY, nullable=False
    )
    payment_method: Mapped[str] = mapped_column(
        payment_method_enum, default=DEFAULT_PAYMENT_METHOD, nullable=False
    )
    source: Mapped[str] = mapped_column(data_source_enum, default="manual", nullable=False)
    entry_date: Mapped[date] = mapped_column("date", Date, default=date.today, nullable=False)

    __table_args__ = (
        Index("ix_expenses_user_date", "user_id", "date"),
        CheckConstraint("amount > 0", name="ck_expenses_amount_positive"),
    )


class Income(Base, TimestampMixin):
    __tablename__ = "incomes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(String(36), index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(), nullable=False)
    source: Mapped[str] = mapped_column(data_source_enum, default="manual", nullable=False)
    entry_date: Mapped[date] = mapped_column("date", Date, default=date.today, nullable=False)

    __table_args__ = (
        Index("ix_incomes_user_date", "user_id", "date"),
        CheckConstraint("amount > 0", name="ck_incomes_amount_positive"),
    )


class WhatsAppMessageLog(Base):
    __tablename__ = "whatsapp_messages_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str | None] = mapped_column(String(36), index=True)
    phone_number: Mapped[str | None] = mapped_column(String(32), index=True)
    raw_message: Mapped[str] = mapped_column(Text, nullable=False)
    parsed_type: Mapped[str | None] = mapped_column(parsed_type_enum)
    parsed_data: Mapped[dict | None] = mapped_column(JSONType, nullable=True)
    response_sent: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False, index=True
    )


class WhatsAppSettings(Base, TimestampMixin):
    __tablename__ = "whatsapp_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(String(36), unique=True, index=True)
    evolution_api_url: Mapped[str | None] = mapped_column(String(255))
    evolution_api_key: Mapped[str | None] = mapped_column(String(255))
    instance_name: Mapped[str | None] = mapped_column(String(120))
    is_connected: Mapped[bool | None] = mapped_column(Boolean, default=False)
