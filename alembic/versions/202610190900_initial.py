"""initial schema

Revision ID: 202610190900
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

from alembic import op
import sqlalchemy as sa


revision = "202610190900"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def _lookup_table(name: str, *extra):
    op.create_table(
        name,
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("color", sa.String(length=7), nullable=False),
        sa.Column("description", sa.Text()),
        *extra,
        *_timestamps(),
    )


def upgrade():
    op.create_table(
        "members",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("color", sa.String(length=7), nullable=False),
        sa.Column(
            "aggregate_to_family", sa.Boolean(), nullable=False, server_default=sa.true()
        ),
        *_timestamps(),
    )

    op.create_table(
        "accounts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column(
            "type",
            sa.Enum(
                "checking", "credit", "savings", "cash", "other", name="accounttype"
            ),
            nullable=False,
        ),
        sa.Column(
            "initial_balance_cents", sa.Integer(), nullable=False, server_default="0"
        ),
        *_timestamps(),
    )

    _lookup_table("expense_categories")
    _lookup_table("income_categories")
    _lookup_table(
        "expense_types",
        sa.Column(
            "recurrence",
            sa.Enum("fixed", "installment", "one_time", name="recurrencekind"),
            nullable=False,
            server_default="one_time",
        ),
    )
    _lookup_table("income_types")

    op.create_table(
        "movements",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("description", sa.String(length=255), nullable=False),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("aggregate_to_family", sa.Boolean()),
        sa.Column("account_id", sa.Integer(), sa.ForeignKey("accounts.id")),
        sa.Column("member_id", sa.Integer(), sa.ForeignKey("members.id")),
        sa.Column(
            "income_type_id",
            sa.Integer(),
            sa.ForeignKey("income_types.id"),
            nullable=False,
        ),
        sa.Column(
            "income_category_id", sa.Integer(), sa.ForeignKey("income_categories.id")
        ),
        *_timestamps(),
        sa.CheckConstraint("amount_cents > 0", name="ck_movements_amount_positive"),
    )
    op.create_index("ix_movements_date", "movements", ["date"])
    op.create_index("ix_movements_member_date", "movements", ["member_id", "date"])

    op.create_table(
        "transactions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("description", sa.String(length=255), nullable=False),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("aggregate_to_family", sa.Boolean()),
        sa.Column("account_id", sa.Integer(), sa.ForeignKey("accounts.id")),
        sa.Column(
            "member_id", sa.Integer(), sa.ForeignKey("members.id"), nullable=False
        ),
        sa.Column(
            "expense_type_id",
            sa.Integer(),
            sa.ForeignKey("expense_types.id"),
            nullable=False,
        ),
        sa.Column(
            "expense_category_id",
            sa.Integer(),
            sa.ForeignKey("expense_categories.id"),
            nullable=False,
        ),
        sa.Column(
            "status",
            sa.Enum("pending", "paid", name="transactionstatus"),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("installment_number", sa.Integer()),
        sa.Column("total_installments", sa.Integer()),
        sa.Column("parent_transaction_id", sa.Integer()),
        *_timestamps(),
        sa.CheckConstraint("amount_cents > 0", name="ck_transactions_amount_positive"),
        sa.CheckConstraint(
            "(installment_number IS NULL) = (total_installments IS NULL)",
            name="ck_transactions_installment_pair",
        ),
        sa.CheckConstraint(
            "installment_number IS NULL OR "
            "(installment_number >= 1 AND installment_number <= total_installments)",
            name="ck_transactions_installment_range",
        ),
    )
    op.create_index("ix_transactions_date", "transactions", ["date"])
    op.create_index(
        "ix_transactions_member_date", "transactions", ["member_id", "date"]
    )
    op.create_index(
        "ix_transactions_account_date", "transactions", ["account_id", "date"]
    )
    op.create_index(
        "ix_transactions_parent", "transactions", ["parent_transaction_id"]
    )

    op.create_table(
        "budgets",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("month", sa.Integer(), nullable=False),
        sa.Column(
            "expense_category_id", sa.Integer(), sa.ForeignKey("expense_categories.id")
        ),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("amount_cents >= 0", name="ck_budgets_amount_positive"),
        sa.CheckConstraint("month >= 1 AND month <= 12", name="ck_budgets_month_range"),
        sa.UniqueConstraint(
            "year", "month", "expense_category_id", name="uq_budget_month_category"
        ),
    )
    op.create_index("ix_budgets_month", "budgets", ["year", "month"])


def downgrade():
    op.drop_index("ix_budgets_month", table_name="budgets")
    op.drop_table("budgets")
    for name in (
        "ix_transactions_parent",
        "ix_transactions_account_date",
        "ix_transactions_member_date",
        "ix_transactions_date",
    ):
        op.drop_index(name, table_name="transactions")
    op.drop_table("transactions")
    op.drop_index("ix_movements_member_date", table_name="movements")
    op.drop_index("ix_movements_date", table_name="movements")
    op.drop_table("movements")
    for name in (
        "income_types",
        "expense_types",
        "income_categories",
        "expense_categories",
        "accounts",
        "members",
    ):
        op.drop_table(name)
