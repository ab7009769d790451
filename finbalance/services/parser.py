"""Rule-based interpreter for Portuguese WhatsApp messages.

Every rule list below is evaluated top to bottom and the first hit wins, so
the order of the entries is part of the behaviour.
"""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass
from typing import Any

from finbalance.core.constants import (
    DEFAULT_EXPENSE_CATEGORY,
    DEFAULT_INCOME_DESCRIPTION,
    DEFAULT_PAYMENT_METHOD,
)


@dataclass(frozen=True)
class TransactionDraft:
    description: str
    amount: float
    category: str | None = None
    payment_method: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {key: value for key, value in asdict(self).items() if value is not None}


@dataclass(frozen=True)
class ParsedIntent:
    type: str | None
    data: TransactionDraft | None = None

    @property
    def is_transaction(self) -> bool:
        return self.type in {"gasto", "ganho"} and self.data is not None

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "data": self.data.to_dict() if self.data else None}


UNKNOWN = ParsedIntent(type=None)
QUESTION = ParsedIntent(type="pergunta")

_CURRENCY_PREFIX = r"(?:r\$?\s*)?"
_AMOUNT = r"([0-9,.]+)"
_REAIS = r"(?:reais?\s+)?"

# (pattern, amount group, description group)
_EXPENSE_PATTERNS: list[tuple[re.Pattern[str], int, int]] = [
    (
        re.compile(
            rf"gastei\s+{_CURRENCY_PREFIX}{_AMOUNT}\s+{_REAIS}(?:no?|na|em|com)\s+(.+)",
            re.IGNORECASE,
        ),
        1,
        2,
    ),
    (
        re.compile(
            rf"(?:paguei|comprei)\s+{_CURRENCY_PREFIX}{_AMOUNT}\s+{_REAIS}(?:no?|na|em|com|de)\s+(.+)",
            re.IGNORECASE,
        ),
        1,
        2,
    ),
    (
        re.compile(rf"(.+)\s+{_CURRENCY_PREFIX}{_AMOUNT}\s*(?:reais?)?", re.IGNORECASE),
        2,
        1,
    ),
]

_INCOME_PATTERNS: list[re.Pattern[str]] = [
    re.compile(
        rf"recebi\s+{_CURRENCY_PREFIX}{_AMOUNT}\s+{_REAIS}(?:de|do|da)?\s*(.+)", re.IGNORECASE
    ),
    re.compile(
        rf"ganhei\s+{_CURRENCY_PREFIX}{_AMOUNT}\s+{_REAIS}(?:de|do|da|com)?\s*(.+)", re.IGNORECASE
    ),
    re.compile(
        rf"entrou\s+{_CURRENCY_PREFIX}{_AMOUNT}\s+{_REAIS}(?:de|do|da)?\s*(.+)", re.IGNORECASE
    ),
]

_QUESTION_KEYWORDS = [
    "quanto",
    "qual",
    "como",
    "saldo",
    "fatura",
    "total",
    "gastei",
    "sobrou",
    "economia",
    "balanço",
    "resumo",
    "relatório",
]

_CATEGORY_RULES: list[tuple[str, list[str]]] = [
    (
        "Alimentação",
        [
            "mercado",
            "supermercado",
            "feira",
            "açougue",
            "padaria",
            "restaurante",
            "lanche",
            "comida",
            "almoço",
            "jantar",
            "café",
        ],
    ),
    (
        "Transporte",
        ["uber", "99", "taxi", "ônibus", "metrô", "gasolina", "combustível", "estacionamento"],
    ),
    (
        "Lazer",
        ["cinema", "netflix", "spotify", "show", "festa", "bar", "balada", "entretenimento"],
    ),
    (
        "Saúde",
        ["farmácia", "médico", "hospital", "plano de saúde", "remédio", "consulta"],
    ),
    ("Educação", ["curso", "livro", "escola", "faculdade", "mensalidade"]),
    ("Moradia", ["aluguel", "condomínio", "luz", "água", "gás", "internet", "iptu"]),
    ("Cartão Crédito", ["cartão", "fatura", "crédito"]),
    # "mensalidade" is already claimed by Educação above
    ("Fixo", ["conta fixa", "mensalidade", "assinatura"]),
]

_PAYMENT_METHOD_RULES: list[tuple[str, list[str]]] = [
    ("crédito", ["crédito", "cartão de crédito"]),
    ("débito", ["débito", "cartão de débito"]),
    ("pix", ["pix"]),
    ("dinheiro", ["dinheiro", "cash", "espécie"]),
    ("transferência", ["transferência", "ted", "doc"]),
]

_NON_NUMERIC = re.compile(r"[^0-9,.\-]")
_LEADING_NUMBER = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)")


def parse_amount(raw: str) -> float:
    """Turn "R$ 45,90" style text into 45.9; anything unparseable is 0.

    Only the first comma becomes the decimal point and parsing stops at the
    first character that cannot continue the number, so "1.234,56" yields
    1.234 rather than 1234.56.
    """
    cleaned = _NON_NUMERIC.sub("", raw).replace(",", ".", 1)
    match = _LEADING_NUMBER.match(cleaned)
    if not match:
        return 0.0
    return float(match.group()) or 0.0


def _first_matching_rule(text: str, rules: list[tuple[str, list[str]]], default: str) -> str:
    lowered = text.lower()
    for label, keywords in rules:
        if any(keyword in lowered for keyword in keywords):
            return label
    return default


def detect_category(description: str) -> str:
    return _first_matching_rule(description, _CATEGORY_RULES, DEFAULT_EXPENSE_CATEGORY)


def detect_payment_method(description: str) -> str:
    return _first_matching_rule(description, _PAYMENT_METHOD_RULES, DEFAULT_PAYMENT_METHOD)


def _match_expense(message: str) -> ParsedIntent | None:
    for pattern, amount_group, description_group in _EXPENSE_PATTERNS:
        match = pattern.fullmatch(message)
        if not match:
            continue
        amount = parse_amount(match.group(amount_group))
        description = match.group(description_group).strip()
        if amount <= 0 or not description:
            continue
        return ParsedIntent(
            type="gasto",
            data=TransactionDraft(
                description=description,
                amount=amount,
                category=detect_category(description),
                payment_method=detect_payment_method(description),
            ),
        )
    return None


def _match_income(message: str) -> ParsedIntent | None:
    for pattern in _INCOME_PATTERNS:
        match = pattern.fullmatch(message)
        if not match:
            continue
        amount = parse_amount(match.group(1))
        if amount <= 0:
            continue
        description = (match.group(2) or "").strip() or DEFAULT_INCOME_DESCRIPTION
        return ParsedIntent(type="ganho", data=TransactionDraft(description=description, amount=amount))
    return None


def _is_question(message: str) -> bool:
    lowered = message.lower().strip()
    return "?" in lowered and any(keyword in lowered for keyword in _QUESTION_KEYWORDS)


def parse_message(message: str) -> ParsedIntent:
    """Classify a message as gasto, ganho, pergunta or unknown (type None).

    Transaction patterns run against the raw text; only the question check
    works on the lowercased, trimmed copy.
    """
    expense = _match_expense(message)
    if expense is not None:
        return expense

    income = _match_income(message)
    if income is not None:
        return income

    if _is_question(message):
        return QUESTION

    return UNKNOWN
