from __future__ import annotations

import calendar
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date

from loguru import logger

from finbalance.core.constants import CREDIT_CARD_CATEGORY, CREDIT_PAYMENT_METHOD
from finbalance.db import models
from finbalance.db.repository import RecordStore

MONTH_NAMES_PT = (
    "janeiro",
    "fevereiro",
    "março",
    "abril",
    "maio",
    "junho",
    "julho",
    "agosto",
    "setembro",
    "outubro",
    "novembro",
    "dezembro",
)

_CARD_BILL = re.compile(r"fatura|cartão|crédito")
_BALANCE = re.compile(r"saldo|sobrou|tenho")
_SPENDING = re.compile(r"gastei|total.*gasto|quanto.*gast")
_REPORT = re.compile(r"resumo|balanço|relatório")

TOP_CATEGORIES = 5
RECENT_TRANSACTIONS = 5


@dataclass
class MonthlySummary:
    total_expenses: float = 0.0
    total_incomes: float = 0.0
    credit_card_total: float = 0.0
    expenses_by_category: dict[str, float] = field(default_factory=dict)

    @property
    def balance(self) -> float:
        return self.total_incomes - self.total_expenses


@dataclass
class HealthStatus:
    status: str
    label: str
    message: str


def month_bounds(today: date) -> tuple[date, date]:
    last_day = calendar.monthrange(today.year, today.month)[1]
    return today.replace(day=1), today.replace(day=last_day)


def month_name(value: date) -> str:
    return MONTH_NAMES_PT[value.month - 1]


def summarize(
    expenses: Iterable[models.Expense],
    incomes: Iterable[models.Income],
    *,
    card_by_payment_method: bool = True,
) -> MonthlySummary:
    """Aggregate expense/income rows.

    The chat answers count an expense towards the card bill when either its
    category is "Cartão Crédito" or it was paid with "crédito"; the
    dashboard only looks at the category (``card_by_payment_method=False``).
    """
    summary = MonthlySummary()
    for expense in expenses:
        amount = float(expense.amount)
        summary.total_expenses += amount
        on_card = expense.category == CREDIT_CARD_CATEGORY or (
            card_by_payment_method and expense.payment_method == CREDIT_PAYMENT_METHOD
        )
        if on_card:
            summary.credit_card_total += amount
        summary.expenses_by_category[expense.category] = (
            summary.expenses_by_category.get(expense.category, 0.0) + amount
        )
    for income in incomes:
        summary.total_incomes += float(income.amount)
    return summary


def top_categories(summary: MonthlySummary, limit: int = TOP_CATEGORIES) -> list[tuple[str, float]]:
    # sorted() is stable, so ties keep first-seen order
    ranked = sorted(summary.expenses_by_category.items(), key=lambda item: item[1], reverse=True)
    return ranked[:limit]


@dataclass
class LedgerEntry:
    kind: str
    id: int
    description: str
    amount: float
    entry_date: date
    category: str | None = None


def recent_transactions(
    expenses: Iterable[models.Expense],
    incomes: Iterable[models.Income],
    limit: int = RECENT_TRANSACTIONS,
) -> list[LedgerEntry]:
    """Merge both ledgers into one feed, newest date first.

    Rows sharing a date keep their input order, expenses ahead of incomes.
    """
    entries = [
        LedgerEntry("expense", e.id, e.description, float(e.amount), e.entry_date, e.category)
        for e in expenses
    ]
    entries.extend(
        LedgerEntry("income", i.id, i.description, float(i.amount), i.entry_date) for i in incomes
    )
    entries.sort(key=lambda entry: entry.entry_date, reverse=True)
    return entries[:limit]


def health_status(balance: float, income: float) -> HealthStatus:
    ratio = (balance / income) * 100 if income > 0 else 0
    if ratio >= 20:
        return HealthStatus("good", "Saudável", "Suas finanças estão em ótimo estado!")
    if ratio >= 0:
        return HealthStatus("warning", "Atenção", "Considere reduzir alguns gastos.")
    return HealthStatus("danger", "Crítico", "Você está gastando mais do que ganha!")


def _format_brl(value: float) -> str:
    return f"R$ {value:.2f}"


def _health_emoji(summary: MonthlySummary) -> str:
    if summary.balance >= summary.total_incomes * 0.2:
        return "🟢"
    if summary.balance >= 0:
        return "🟡"
    return "🔴"


def _card_bill_reply(summary: MonthlySummary, month_label: str) -> str:
    footer = (
        "Lembre-se de pagar em dia! 📅"
        if summary.credit_card_total > 0
        else "Nenhum gasto no cartão este mês! 🎉"
    )
    return "\n".join(
        [
            f"💳 *Fatura do Cartão ({month_label})*",
            "",
            f"Total: {_format_brl(summary.credit_card_total)}",
            "",
            footer,
        ]
    )


def _balance_reply(summary: MonthlySummary) -> str:
    healthy = summary.balance >= 0
    return "\n".join(
        [
            f"{'💚' if healthy else '🔴'} *Seu Saldo Atual*",
            "",
            f"💰 Ganhos: {_format_brl(summary.total_incomes)}",
            f"💸 Gastos: {_format_brl(summary.total_expenses)}",
            "━━━━━━━━━━━",
            f"{'✅' if healthy else '⚠️'} Saldo: {_format_brl(summary.balance)}",
        ]
    )


def _spending_reply(summary: MonthlySummary, month_label: str) -> str:
    breakdown = "".join(
        f"\n• {category}: {_format_brl(amount)}" for category, amount in top_categories(summary)
    )
    return "\n".join(
        [
            f"💸 *Gastos de {month_label}*",
            "",
            f"Total: {_format_brl(summary.total_expenses)}",
            "",
            f"📊 Por categoria:{breakdown}",
        ]
    )


def _report_reply(summary: MonthlySummary, month_label: str) -> str:
    return "\n".join(
        [
            f"📊 *Resumo Financeiro - {month_label}*",
            "",
            f"💰 Receitas: {_format_brl(summary.total_incomes)}",
            f"💸 Despesas: {_format_brl(summary.total_expenses)}",
            f"💳 Cartão: {_format_brl(summary.credit_card_total)}",
            "━━━━━━━━━━━",
            f"💵 Saldo: {_format_brl(summary.balance)}",
            f"{_health_emoji(summary)} Saúde Financeira",
        ]
    )


def _quick_reply(summary: MonthlySummary) -> str:
    return "\n".join(
        [
            "📊 *Resumo Rápido*",
            "",
            f"💰 Ganhos: {_format_brl(summary.total_incomes)}",
            f"💸 Gastos: {_format_brl(summary.total_expenses)}",
            f"💵 Saldo: {_format_brl(summary.balance)}",
            "",
            "💡 Pergunte sobre:",
            '• "Quanto gastei esse mês?"',
            '• "Qual minha fatura do cartão?"',
            '• "Qual meu saldo atual?"',
        ]
    )


def render_answer(question: str, summary: MonthlySummary, today: date) -> str:
    """Pick the reply template for ``question`` and fill it with ``summary``."""
    lowered = question.lower()
    month_label = month_name(today)

    if _CARD_BILL.search(lowered):
        return _card_bill_reply(summary, month_label)
    if _BALANCE.search(lowered):
        return _balance_reply(summary)
    if _SPENDING.search(lowered):
        return _spending_reply(summary, month_label)
    if _REPORT.search(lowered):
        return _report_reply(summary, month_label)
    return _quick_reply(summary)


async def answer_question(store: RecordStore, user_id: str, question: str, *, today: date) -> str:
    """Answer a finance question about the month containing ``today``."""
    start, end = month_bounds(today)
    expenses = await store.list_expenses(user_id, start, end)
    incomes = await store.list_incomes(user_id, start, end)
    summary = summarize(expenses, incomes)
    logger.debug(
        "Computed monthly summary",
        user_id=user_id,
        expenses=len(expenses),
        incomes=len(incomes),
        balance=summary.balance,
    )
    return render_answer(question, summary, today)
