"""Initial schema for the finance tracker"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "20261019_01"
down_revision = None
branch_labels = None
depends_on = None


expense_category = sa.Enum(
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
    name="expense_category",
)
payment_method = sa.Enum("crédito", "débito", "pix", "dinheiro", "transferência", name="payment_method")
parsed_type = sa.Enum("gasto", "ganho", "pergunta", name="parsed_type")
data_source = sa.Enum("whatsapp", "manual", name="data_source")

json_type = sa.JSON(none_as_null=True).with_variant(
    postgresql.JSONB(none_as_null=True, astext_type=sa.Text()), "postgresql"
)


def upgrade() -> None:
    op.create_table(
        "profiles",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.String(length=36), nullable=False, unique=True),
        sa.Column("full_name", sa.String(length=255), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("phone_number", sa.String(length=32), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_profiles_user_id", "profiles", ["user_id"])
    op.create_index("ix_profiles_phone_number", "profiles", ["phone_number"])

    op.create_table(
        "expenses",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("amount", sa.Numeric(), nullable=False),
        sa.Column("category", expense_category, nullable=False, server_default=sa.text("'Outros'")),
        sa.Column("payment_method", payment_method, nullable=False, server_default=sa.text("'débito'")),
        sa.Column("source", data_source, nullable=False, server_default=sa.text("'manual'")),
        sa.Column("date", sa.Date(), nullable=False, server_default=sa.func.current_date()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("amount > 0", name="ck_expenses_amount_positive"),
    )
    op.create_index("ix_expenses_user_id", "expenses", ["user_id"])
    op.create_index("ix_expenses_user_date", "expenses", ["user_id", "date"])

    op.create_table(
        "incomes",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("amount", sa.Numeric(), nullable=False),
        sa.Column("source", data_source, nullable=False, server_default=sa.text("'manual'")),
        sa.Column("date", sa.Date(), nullable=False, server_default=sa.func.current_date()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("amount > 0", name="ck_incomes_amount_positive"),
    )
    op.create_index("ix_incomes_user_id", "incomes", ["user_id"])
    op.create_index("ix_incomes_user_date", "incomes", ["user_id", "date"])

    op.create_table(
        "whatsapp_messages_log",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.String(length=36), nullable=True),
        sa.Column("phone_number", sa.String(length=32), nullable=True),
        sa.Column("raw_message", sa.Text(), nullable=False),
        sa.Column("parsed_type", parsed_type, nullable=True),
        sa.Column("parsed_data", json_type, nullable=True),
        sa.Column("response_sent", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_whatsapp_messages_log_user_id", "whatsapp_messages_log", ["user_id"])
    op.create_index("ix_whatsapp_messages_log_phone_number", "whatsapp_messages_log", ["phone_number"])
    op.create_index("ix_whatsapp_messages_log_created_at", "whatsapp_messages_log", ["created_at"])


def downgrade() -> None:
    op.drop_index("ix_whatsapp_messages_log_created_at", table_name="whatsapp_messages_log")
    op.drop_index("ix_whatsapp_messages_log_phone_number", table_name="whatsapp_messages_log")
    op.drop_index("ix_whatsapp_messages_log_user_id", table_name="whatsapp_messages_log")
    op.drop_table("whatsapp_messages_log")
    parsed_type.drop(op.get_bind(), checkfirst=True)

    op.drop_index("ix_incomes_user_date", table_name="incomes")
    op.drop_index("ix_incomes_user_id", table_name="incomes")
    op.drop_table("incomes")

    op.drop_index("ix_expenses_user_date", table_name="expenses")
    op.drop_index("ix_expenses_user_id", table_name="expenses")
    op.drop_table("expenses")
    data_source.drop(op.get_bind(), checkfirst=True)
    payment_method.drop(op.get_bind(), checkfirst=True)
    expense_category.drop(op.get_bind(), checkfirst=True)

    op.drop_index("ix_profiles_phone_number", table_name="profiles")
    op.drop_index("ix_profiles_user_id", table_name="profiles")
    op.drop_table("profiles")
