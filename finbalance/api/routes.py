import calendar
from datetime import date
from decimal import Decimal
from typing import Annotated, Any, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Response, status
from fastapi.responses import JSONResponse
from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from finbalance.core.config import Settings, get_settings
from finbalance.core.constants import ParsedType
from finbalance.db import models
from finbalance.db.repository import RecordStore
from finbalance.db.session import get_session
from finbalance.schemas.reports import (
    CategoryBreakdown,
    HealthIndicator,
    MonthlyReportResponse,
    RecentTransaction,
)
from finbalance.schemas.transactions import (
    Expense,
    ExpenseCreate,
    ExpenseList,
    ExpenseUpdate,
    Income,
    IncomeCreate,
    IncomeList,
    IncomeUpdate,
)
from finbalance.schemas.webhook import WebhookResponse
from finbalance.schemas.whatsapp import (
    MessageLog,
    MessageLogList,
    MessageStats,
    PhoneLink,
    ProfileOut,
    WhatsAppSettingsIn,
    WhatsAppSettingsOut,
)
from finbalance.services.summary import (
    RECENT_TRANSACTIONS,
    health_status,
    recent_transactions,
    summarize,
)
from finbalance.services.webhook import handle_webhook, local_today

router = APIRouter()

MonthQuery = Annotated[Optional[str], Query(pattern=r"^\d{4}-\d{2}$", examples=["2026-10"])]
SearchQuery = Annotated[Optional[str], Query(description="Case-insensitive text search")]


@router.get("/healthz", response_model=dict)
async def healthz() -> dict:
    return {"status": "ok"}


@router.post(
    "/whatsapp/webhook",
    response_model=WebhookResponse,
    response_model_exclude_unset=True,
)
async def whatsapp_webhook(
    payload: Annotated[dict[str, Any], Body()],
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
):
    try:
        return await handle_webhook(session, payload, settings)
    except Exception as exc:
        logger.exception("Webhook error")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": str(exc) or "Unknown error"},
        )


@router.post("/expenses", response_model=Expense, status_code=status.HTTP_201_CREATED)
async def create_expense(
    body: ExpenseCreate, session: AsyncSession = Depends(get_session)
) -> Expense:
    expense = await RecordStore(session).add_expense(
        user_id=body.user_id,
        description=body.description,
        amount=body.amount,
        category=body.category,
        payment_method=body.payment_method,
        source="manual",
        entry_date=body.date,
    )
    return Expense.model_validate(expense)


@router.get("/expenses", response_model=ExpenseList)
async def list_expenses(
    user_id: str,
    month: MonthQuery = None,
    category: Annotated[Optional[str], Query()] = None,
    q: SearchQuery = None,
    session: AsyncSession = Depends(get_session),
) -> ExpenseList:
    start, end = _month_range(month)
    rows = await RecordStore(session).list_expenses(user_id, start, end, newest_first=True)
    if category is not None:
        rows = [row for row in rows if row.category == category]
    if q:
        rows = [row for row in rows if _contains(row.description, q)]
    items = [Expense.model_validate(row) for row in rows]
    return ExpenseList(items=items, total=len(items), total_amount=sum(item.amount for item in items))


@router.patch("/expenses/{expense_id}", response_model=Expense)
async def update_expense(
    expense_id: int, body: ExpenseUpdate, session: AsyncSession = Depends(get_session)
) -> Expense:
    expense = await _get_or_404(session, models.Expense, expense_id, "Gasto não encontrado")
    _apply_update(expense, body.model_dump(exclude_unset=True))
    await session.commit()
    await session.refresh(expense)
    return Expense.model_validate(expense)


@router.delete("/expenses/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_expense(expense_id: int, session: AsyncSession = Depends(get_session)) -> Response:
    expense = await _get_or_404(session, models.Expense, expense_id, "Gasto não encontrado")
    await session.delete(expense)
    await session.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/incomes", response_model=Income, status_code=status.HTTP_201_CREATED)
async def create_income(body: IncomeCreate, session: AsyncSession = Depends(get_session)) -> Income:
    income = await RecordStore(session).add_income(
        user_id=body.user_id,
        description=body.description,
        amount=body.amount,
        source="manual",
        entry_date=body.date,
    )
    return Income.model_validate(income)


@router.get("/incomes", response_model=IncomeList)
async def list_incomes(
    user_id: str,
    month: MonthQuery = None,
    q: SearchQuery = None,
    session: AsyncSession = Depends(get_session),
) -> IncomeList:
    start, end = _month_range(month)
    rows = await RecordStore(session).list_incomes(user_id, start, end, newest_first=True)
    if q:
        rows = [row for row in rows if _contains(row.description, q)]
    items = [Income.model_validate(row) for row in rows]
    return IncomeList(items=items, total=len(items), total_amount=sum(item.amount for item in items))


@router.patch("/incomes/{income_id}", response_model=Income)
async def update_income(
    income_id: int, body: IncomeUpdate, session: AsyncSession = Depends(get_session)
) -> Income:
    income = await _get_or_404(session, models.Income, income_id, "Ganho não encontrado")
    _apply_update(income, body.model_dump(exclude_unset=True))
    await session.commit()
    await session.refresh(income)
    return Income.model_validate(income)


@router.delete("/incomes/{income_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_income(income_id: int, session: AsyncSession = Depends(get_session)) -> Response:
    income = await _get_or_404(session, models.Income, income_id, "Ganho não encontrado")
    await session.delete(income)
    await session.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/reports/monthly", response_model=MonthlyReportResponse)
async def get_monthly_report(
    user_id: str,
    month: MonthQuery = None,
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> MonthlyReportResponse:
    start, end = _month_range(month or local_today(settings).strftime("%Y-%m"))
    store = RecordStore(session)
    expenses = await store.list_expenses(user_id, start, end)
    incomes = await store.list_incomes(user_id, start, end)
    summary = summarize(expenses, incomes, card_by_payment_method=False)
    health = health_status(summary.balance, summary.total_incomes)

    return MonthlyReportResponse(
        month=start.strftime("%Y-%m"),
        total_income=summary.total_incomes,
        total_expense=summary.total_expenses,
        balance=summary.balance,
        credit_card_total=summary.credit_card_total,
        category_breakdown=[
            CategoryBreakdown(category=name, amount=amount)
            for name, amount in summary.expenses_by_category.items()
        ],
        health=HealthIndicator(status=health.status, label=health.label, message=health.message),
    )


@router.get("/transactions/recent", response_model=list[RecentTransaction])
async def list_recent_transactions(
    user_id: str,
    limit: Annotated[int, Query(ge=1, le=50)] = RECENT_TRANSACTIONS,
    session: AsyncSession = Depends(get_session),
) -> list[RecentTransaction]:
    store = RecordStore(session)
    expenses = await store.list_expenses(user_id, newest_first=True)
    incomes = await store.list_incomes(user_id, newest_first=True)
    return [
        RecentTransaction(
            id=entry.id,
            type=entry.kind,
            description=entry.description,
            amount=entry.amount,
            date=entry.entry_date,
            category=entry.category,
        )
        for entry in recent_transactions(expenses, incomes, limit)
    ]


@router.get("/whatsapp/messages", response_model=MessageLogList)
async def list_whatsapp_messages(
    user_id: str,
    parsed_type: Annotated[Optional[ParsedType], Query()] = None,
    q: SearchQuery = None,
    session: AsyncSession = Depends(get_session),
) -> MessageLogList:
    store = RecordStore(session)
    everything = await store.list_messages(user_id)
    rows = everything if parsed_type is None else [m for m in everything if m.parsed_type == parsed_type]
    if q:
        # phone numbers are digits, so only the message text is case-folded
        rows = [m for m in rows if _contains(m.raw_message, q) or q in (m.phone_number or "")]
    stats = MessageStats(
        total=len(everything),
        gastos=sum(1 for m in everything if m.parsed_type == "gasto"),
        ganhos=sum(1 for m in everything if m.parsed_type == "ganho"),
        perguntas=sum(1 for m in everything if m.parsed_type == "pergunta"),
    )
    return MessageLogList(items=[MessageLog.model_validate(m) for m in rows], stats=stats)


@router.get("/whatsapp/settings", response_model=WhatsAppSettingsOut)
async def get_whatsapp_settings(
    user_id: str, session: AsyncSession = Depends(get_session)
) -> WhatsAppSettingsOut:
    current = await RecordStore(session).get_whatsapp_settings(user_id)
    if current is None:
        raise HTTPException(status_code=404, detail="Configuração do WhatsApp não encontrada")
    return WhatsAppSettingsOut.model_validate(current)


@router.put("/whatsapp/settings", response_model=WhatsAppSettingsOut)
async def upsert_whatsapp_settings(
    body: WhatsAppSettingsIn, session: AsyncSession = Depends(get_session)
) -> WhatsAppSettingsOut:
    current = await RecordStore(session).get_whatsapp_settings(body.user_id)
    if current is None:
        current = models.WhatsAppSettings(user_id=body.user_id)
        session.add(current)
    current.evolution_api_url = body.evolution_api_url
    current.evolution_api_key = body.evolution_api_key
    current.instance_name = body.instance_name
    await session.commit()
    await session.refresh(current)
    return WhatsAppSettingsOut.model_validate(current)


@router.put("/profiles/{user_id}/phone", response_model=ProfileOut)
async def link_phone_number(
    user_id: str, body: PhoneLink, session: AsyncSession = Depends(get_session)
) -> ProfileOut:
    profile = await session.scalar(select(models.Profile).where(models.Profile.user_id == user_id))
    if profile is None:
        profile = models.Profile(user_id=user_id)
        session.add(profile)
    profile.phone_number = body.phone_number
    await session.commit()
    await session.refresh(profile)
    return ProfileOut.model_validate(profile)


def _month_range(month: str | None) -> tuple[date | None, date | None]:
    if month is None:
        return None, None
    try:
        year, month_number = (int(part) for part in month.split("-"))
        last_day = calendar.monthrange(year, month_number)[1]
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Mês inválido, use AAAA-MM") from exc
    return date(year, month_number, 1), date(year, month_number, last_day)


def _contains(text: str, query: str) -> bool:
    return query.lower() in text.lower()


async def _get_or_404(session: AsyncSession, model, record_id: int, detail: str):
    record = await session.get(model, record_id)
    if record is None:
        raise HTTPException(status_code=404, detail=detail)
    return record


def _apply_update(record, changes: dict[str, Any]) -> None:
    if "date" in changes:
        changes["entry_date"] = changes.pop("date")
    if "amount" in changes and changes["amount"] is not None:
        changes["amount"] = Decimal(str(changes["amount"]))
    for field, value in changes.items():
        if value is not None:
            setattr(record, field, value)
