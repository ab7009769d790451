from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from finbalance.db import models


class RecordStoreError(Exception):
    """Raised when a write to the record store fails."""


class RecordStore:
    """Data-access surface used by the webhook and the summary engine."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def find_user_id_by_phone(self, phone_number: str) -> str | None:
        stmt = select(models.Profile.user_id).where(models.Profile.phone_number == phone_number)
        return (await self.session.execute(stmt.limit(1))).scalar_one_or_none()

    async def list_expenses(
        self,
        user_id: str,
        start: date | None = None,
        end: date | None = None,
        *,
        newest_first: bool = False,
    ) -> list[models.Expense]:
        stmt = select(models.Expense).where(models.Expense.user_id == user_id)
        if start is not None:
            stmt = stmt.where(models.Expense.entry_date >= start)
        if end is not None:
            stmt = stmt.where(models.Expense.entry_date <= end)
        if newest_first:
            stmt = stmt.order_by(models.Expense.entry_date.desc(), models.Expense.id.desc())
        else:
            stmt = stmt.order_by(models.Expense.entry_date, models.Expense.id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_incomes(
        self,
        user_id: str,
        start: date | None = None,
        end: date | None = None,
        *,
        newest_first: bool = False,
    ) -> list[models.Income]:
        stmt = select(models.Income).where(models.Income.user_id == user_id)
        if start is not None:
            stmt = stmt.where(models.Income.entry_date >= start)
        if end is not None:
            stmt = stmt.where(models.Income.entry_date <= end)
        if newest_first:
            stmt = stmt.order_by(models.Income.entry_date.desc(), models.Income.id.desc())
        else:
            stmt = stmt.order_by(models.Income.entry_date, models.Income.id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def add_expense(
        self,
        *,
        user_id: str,
        description: str,
        amount: float | Decimal,
        category: str,
        payment_method: str,
        source: str,
        entry_date: date | None = None,
    ) -> models.Expense:
        expense = models.Expense(
            user_id=user_id,
            description=description,
            amount=Decimal(str(amount)),
            category=category,
            payment_method=payment_method,
            source=source,
            entry_date=entry_date or date.today(),
        )
        return await self._commit_new(expense)

    async def add_income(
        self,
        *,
        user_id: str,
        description: str,
        amount: float | Decimal,
        source: str,
        entry_date: date | None = None,
    ) -> models.Income:
        income = models.Income(
            user_id=user_id,
            description=description,
            amount=Decimal(str(amount)),
            source=source,
            entry_date=entry_date or date.today(),
        )
        return await self._commit_new(income)

    async def log_message(
        self,
        *,
        user_id: str | None,
        phone_number: str | None,
        raw_message: str,
        parsed_type: str | None,
        parsed_data: dict[str, Any] | None,
    ) -> models.WhatsAppMessageLog:
        entry = models.WhatsAppMessageLog(
            user_id=user_id,
            phone_number=phone_number,
            raw_message=raw_message,
            parsed_type=parsed_type,
            parsed_data=parsed_data,
        )
        return await self._commit_new(entry)

    async def attach_response(self, phone_number: str, response: str) -> models.WhatsAppMessageLog | None:
        """Store the reply on the newest log entry received from ``phone_number``."""
        stmt = (
            select(models.WhatsAppMessageLog)
            .where(models.WhatsAppMessageLog.phone_number == phone_number)
            .order_by(models.WhatsAppMessageLog.created_at.desc(), models.WhatsAppMessageLog.id.desc())
            .limit(1)
        )
        entry = await self.session.scalar(stmt)
        if entry is None:
            return None
        entry.response_sent = response
        try:
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            raise RecordStoreError(str(exc)) from exc
        return entry

    async def list_messages(self, user_id: str) -> list[models.WhatsAppMessageLog]:
        stmt = select(models.WhatsAppMessageLog).where(models.WhatsAppMessageLog.user_id == user_id)
        stmt = stmt.order_by(
            models.WhatsAppMessageLog.created_at.desc(), models.WhatsAppMessageLog.id.desc()
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_whatsapp_settings(self, user_id: str) -> models.WhatsAppSettings | None:
        stmt = select(models.WhatsAppSettings).where(models.WhatsAppSettings.user_id == user_id)
        return await self.session.scalar(stmt)

    async def _commit_new(self, record):
        self.session.add(record)
        try:
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            raise RecordStoreError(str(exc)) from exc
        await self.session.refresh(record)
        return record
