from typing import Literal, get_args

ExpenseCategory = Literal[
    "Cartão Crédito",
    "Gasto Variável",
    "Fixo",
    "Alimentação",
    "Transporte",
    "Lazer",
    "Saúde",
    "Educação",
    "Moradia",
    "Outros",
]
PaymentMethod = Literal["crédito", "débito", "pix", "dinheiro", "transferência"]
ParsedType = Literal["gasto", "ganho", "pergunta"]
DataSource = Literal["whatsapp", "manual"]

EXPENSE_CATEGORIES: tuple[str, ...] = get_args(ExpenseCategory)
PAYMENT_METHODS: tuple[str, ...] = get_args(PaymentMethod)
PARSED_TYPES: tuple[str, ...] = get_args(ParsedType)
DATA_SOURCES: tuple[str, ...] = get_args(DataSource)

CREDIT_CARD_CATEGORY = "Cartão Crédito"
DEFAULT_EXPENSE_CATEGORY = "Gasto Variável"
MANUAL_EXPENSE_CATEGORY = "Outros"
DEFAULT_PAYMENT_METHOD = "débito"
CREDIT_PAYMENT_METHOD = "crédito"
DEFAULT_INCOME_DESCRIPTION = "Receita"

WHATSAPP_JID_SUFFIX = "@s.whatsapp.net"
