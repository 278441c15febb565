from datetime import date, datetime
from enum import Enum
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, declared_attr, mapped_column, relationship

from database import Base


class AccountType(str, Enum):
    checking = "checking"
    credit = "credit"
    savings = "savings"
    cash = "cash"
    other = "other"


class RecurrenceKind(str, Enum):
    fixed = "fixed"
    installment = "installment"
    one_time = "one_time"


class TransactionStatus(str, Enum):
    pending = "pending"
    paid = "paid"


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )


class LookupMixin:
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    color: Mapped[str] = mapped_column(String(7), nullable=False, default="#64748b")
    description: Mapped[Optional[str]] = mapped_column(Text)


class Member(Base, TimestampMixin):
    __tablename__ = "members"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    color: Mapped[str] = mapped_column(String(7), nullable=False, default="#6366f1")
    aggregate_to_family: Mapped[bool] = mapped_column(
        Boolean, default=True, nullable=False
    )


class Account(Base, TimestampMixin):
    __tablename__ = "accounts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    type: Mapped[AccountType] = mapped_column(SAEnum(AccountType), nullable=False)
    initial_balance_cents: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )


class ExpenseCategory(Base, LookupMixin, TimestampMixin):
    __tablename__ = "expense_categories"


class IncomeCategory(Base, LookupMixin, TimestampMixin):
    __tablename__ = "income_categories"


class ExpenseType(Base, LookupMixin, TimestampMixin):
    __tablename__ = "expense_types"

    recurrence: Mapped[RecurrenceKind] = mapped_column(
        SAEnum(RecurrenceKind), nullable=False, default=RecurrenceKind.one_time
    )


class IncomeType(Base, LookupMixin, TimestampMixin):
    __tablename__ = "income_types"


class LedgerEntryMixin:
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    description: Mapped[str] = mapped_column(String(255), nullable=False)
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    date: Mapped[date] = mapped_column(Date, nullable=False)
    # NULL inherits the member's default
    aggregate_to_family: Mapped[Optional[bool]] = mapped_column(Boolean)

    @declared_attr
    def account_id(cls) -> Mapped[Optional[int]]:
        return mapped_column(ForeignKey("accounts.id"))

    @declared_attr
    def account(cls) -> Mapped[Optional["Account"]]:
        return relationship("Account")

    @declared_attr
    def member(cls) -> Mapped[Optional["Member"]]:
        return relationship("Member")


class Movement(Base, LedgerEntryMixin, TimestampMixin):
    __tablename__ = "movements"

    member_id: Mapped[Optional[int]] = mapped_column(ForeignKey("members.id"))
    income_type_id: Mapped[int] = mapped_column(
        ForeignKey("income_types.id"), nullable=False
    )
    income_category_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("income_categories.id")
    )

    income_type: Mapped["IncomeType"] = relationship("IncomeType")
    income_category: Mapped[Optional["IncomeCategory"]] = relationship(
        "IncomeCategory"
    )

    __table_args__ = (
        Index("ix_movements_date", "date"),
        Index("ix_movements_member_date", "member_id", "date"),
        CheckConstraint("amount_cents > 0", name="ck_movements_amount_positive"),
    )


class Transaction(Base, LedgerEntryMixin, TimestampMixin):
    __tablename__ = "transactions"

    member_id: Mapped[int] = mapped_column(ForeignKey("members.id"), nullable=False)
    expense_type_id: Mapped[int] = mapped_column(
        ForeignKey("expense_types.id"), nullable=False
    )
    expense_category_id: Mapped[int] = mapped_column(
        ForeignKey("expense_categories.id"), nullable=False
    )
    status: Mapped[TransactionStatus] = mapped_column(
        SAEnum(TransactionStatus), nullable=False, default=TransactionStatus.pending
    )
    installment_number: Mapped[Optional[int]] = mapped_column(Integer)
    total_installments: Mapped[Optional[int]] = mapped_column(Integer)
    # Group id of an installment purchase (id of installment #1, stored on every
    # row of the group). Not a foreign key: rows outlive their siblings.
    parent_transaction_id: Mapped[Optional[int]] = mapped_column(Integer)

    expense_type: Mapped["ExpenseType"] = relationship("ExpenseType")
    expense_category: Mapped["ExpenseCategory"] = relationship("ExpenseCategory")

    __table_args__ = (
        Index("ix_transactions_date", "date"),
        Index("ix_transactions_member_date", "member_id", "date"),
        Index("ix_transactions_account_date", "account_id", "date"),
        Index("ix_transactions_parent", "parent_transaction_id"),
        CheckConstraint("amount_cents > 0", name="ck_transactions_amount_positive"),
        CheckConstraint(
            "(installment_number IS NULL) = (total_installments IS NULL)",
            name="ck_transactions_installment_pair",
        ),
        CheckConstraint(
            "installment_number IS NULL OR "
            "(installment_number >= 1 AND installment_number <= total_installments)",
            name="ck_transactions_installment_range",
        ),
    )


class Budget(Base, TimestampMixin):
    __tablename__ = "budgets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    expense_category_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("expense_categories.id")
    )
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)

    expense_category: Mapped[Optional["ExpenseCategory"]] = relationship(
        "ExpenseCategory"
    )

    __table_args__ = (
        CheckConstraint("amount_cents >= 0", name="ck_budgets_amount_positive"),
        CheckConstraint("month >= 1 AND month <= 12", name="ck_budgets_month_range"),
        UniqueConstraint(
            "year", "month", "expense_category_id", name="uq_budget_month_category"
        ),
        Index("ix_budgets_month", "year", "month"),
    )
