from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

import aggregation
from errors import NotFoundError, ValidationError
from installments import InstallmentEngine
from models import (
    Account,
    Budget,
    ExpenseCategory,
    ExpenseType,
    IncomeCategory,
    IncomeType,
    Member,
    Movement,
    RecurrenceKind,
    Transaction,
    TransactionStatus,
)
from periods import Period, current_month, local_today, month_bounds
from schemas import BudgetIn, MovementIn, TransactionIn

logger = logging.getLogger(__name__)


@dataclass
class LedgerFilters:
    account_id: Optional[int] = None
    member_id: Optional[int] = None
    status: Optional[TransactionStatus] = None
    category_id: Optional[int] = None
    type_id: Optional[int] = None
    start: Optional[date] = None
    end: Optional[date] = None

    @classmethod
    def for_period(cls, period: Period) -> "LedgerFilters":
        return cls(start=period.start, end=period.end)


def _require(session: Session, model, pk: Optional[int], label: str) -> None:
    if pk is not None and session.get(model, pk) is None:
        raise ValidationError(f"{label} not found")


class MovementService:
    def __init__(self, session: Session) -> None:
        self.session = session

    def create(self, data: MovementIn) -> Movement:
        _require(self.session, IncomeType, data.income_type_id, "Income type")
        _require(
            self.session, IncomeCategory, data.income_category_id, "Income category"
        )
        _require(self.session, Account, data.account_id, "Account")
        _require(self.session, Member, data.member_id, "Member")
        movement = Movement(
            description=data.description,
            amount_cents=data.amount_cents,
            date=data.date,
            account_id=data.account_id,
            member_id=data.member_id,
            income_type_id=data.income_type_id,
            income_category_id=data.income_category_id,
            aggregate_to_family=data.aggregate_to_family,
        )
        self.session.add(movement)
        self.session.commit()
        self.session.refresh(movement)
        return movement

    def get(self, movement_id: int) -> Movement:
        movement = self.session.get(Movement, movement_id)
        if not movement:
            raise NotFoundError("Movement not found")
        return movement

    def list(self, filters: Optional[LedgerFilters] = None) -> list[Movement]:
        filters = filters or LedgerFilters()
        stmt = select(Movement).order_by(Movement.date.desc(), Movement.id.desc())
        if filters.account_id:
            stmt = stmt.where(Movement.account_id == filters.account_id)
        if filters.member_id:
            stmt = stmt.where(Movement.member_id == filters.member_id)
        if filters.category_id:
            stmt = stmt.where(Movement.income_category_id == filters.category_id)
        if filters.type_id:
            stmt = stmt.where(Movement.income_type_id == filters.type_id)
        if filters.start:
            stmt = stmt.where(Movement.date >= filters.start)
        if filters.end:
            stmt = stmt.where(Movement.date <= filters.end)
        return list(self.session.scalars(stmt).all())

    def delete(self, movement_id: int) -> None:
        movement = self.get(movement_id)
        self.session.delete(movement)
        self.session.commit()
        logger.info("movement_deleted: id=%s", movement_id)


class TransactionService:
    def __init__(self, session: Session) -> None:
        self.session = session

    def _validate(self, data: TransactionIn) -> ExpenseType:
        expense_type = self.session.get(ExpenseType, data.expense_type_id)
        if not expense_type:
            raise ValidationError("Expense type not found")
        _require(
            self.session, ExpenseCategory, data.expense_category_id, "Expense category"
        )
        _require(self.session, Member, data.member_id, "Member")
        _require(self.session, Account, data.account_id, "Account")

        installments = data.total_installments or 1
        is_installment_type = expense_type.recurrence == RecurrenceKind.installment
        if is_installment_type and installments < 2:
            raise ValidationError(
                "Installment expenses need total_installments of at least 2"
            )
        if installments >= 2 and not is_installment_type:
            raise ValidationError(
                f"Expense type '{expense_type.name}' does not allow installments"
            )
        return expense_type

    def create(self, data: TransactionIn) -> list[Transaction]:
        """Persist an expense; installment purchases become one row per month."""
        self._validate(data)
        installments = data.total_installments or 1
        if installments >= 2:
            return InstallmentEngine(self.session).expand(data, installments)

        txn = Transaction(
            description=data.description,
            amount_cents=data.amount_cents,
            date=data.date,
            account_id=data.account_id,
            member_id=data.member_id,
            expense_type_id=data.expense_type_id,
            expense_category_id=data.expense_category_id,
            status=data.status,
            aggregate_to_family=data.aggregate_to_family,
        )
        self.session.add(txn)
        self.session.commit()
        self.session.refresh(txn)
        return [txn]

    def get(self, transaction_id: int) -> Transaction:
        txn = self.session.get(Transaction, transaction_id)
        if not txn:
            raise NotFoundError("Transaction not found")
        return txn

    def list(self, filters: Optional[LedgerFilters] = None) -> list[Transaction]:
        filters = filters or LedgerFilters()
        stmt = select(Transaction).order_by(
            Transaction.date.desc(), Transaction.id.desc()
        )
        if filters.account_id:
            stmt = stmt.where(Transaction.account_id == filters.account_id)
        if filters.member_id:
            stmt = stmt.where(Transaction.member_id == filters.member_id)
        if filters.status:
            stmt = stmt.where(Transaction.status == filters.status)
        if filters.category_id:
            stmt = stmt.where(Transaction.expense_category_id == filters.category_id)
        if filters.type_id:
            stmt = stmt.where(Transaction.expense_type_id == filters.type_id)
        if filters.start:
            stmt = stmt.where(Transaction.date >= filters.start)
        if filters.end:
            stmt = stmt.where(Transaction.date <= filters.end)
        return list(self.session.scalars(stmt).all())

    def installment_group(self, parent_id: int) -> list[Transaction]:
        stmt = (
            select(Transaction)
            .where(Transaction.parent_transaction_id == parent_id)
            .order_by(Transaction.installment_number)
        )
        rows = list(self.session.scalars(stmt).all())
        if not rows:
            raise NotFoundError("Installment group not found")
        return rows

    def update_status(
        self, transaction_id: int, status: TransactionStatus
    ) -> Transaction:
        txn = self.get(transaction_id)
        txn.status = status
        self.session.commit()
        self.session.refresh(txn)
        return txn

    def delete(self, transaction_id: int) -> None:
        # siblings of an installment group are left untouched
        txn = self.get(transaction_id)
        group_id = txn.parent_transaction_id
        self.session.delete(txn)
        self.session.commit()
        logger.info("transaction_deleted: id=%s group=%s", transaction_id, group_id)


class MemberService:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, member_id: int) -> Member:
        member = self.session.get(Member, member_id)
        if not member:
            raise NotFoundError("Member not found")
        return member

    def set_aggregate_to_family(self, member_id: int, value: bool) -> Member:
        member = self.get(member_id)
        member.aggregate_to_family = value
        self.session.commit()
        self.session.refresh(member)
        logger.info("member_updated: id=%s aggregate_to_family=%s", member_id, value)
        return member


class BudgetService:
    def __init__(self, session: Session) -> None:
        self.session = session

    def upsert(self, data: BudgetIn) -> Budget:
        _require(
            self.session, ExpenseCategory, data.expense_category_id, "Expense category"
        )
        stmt = select(Budget).where(Budget.year == data.year, Budget.month == data.month)
        if data.expense_category_id is None:
            stmt = stmt.where(Budget.expense_category_id.is_(None))
        else:
            stmt = stmt.where(Budget.expense_category_id == data.expense_category_id)
        budget = self.session.scalar(stmt)
        if budget is None:
            budget = Budget(
                year=data.year,
                month=data.month,
                expense_category_id=data.expense_category_id,
                amount_cents=data.amount_cents,
            )
            self.session.add(budget)
        else:
            budget.amount_cents = data.amount_cents
        self.session.commit()
        self.session.refresh(budget)
        return budget

    def list_for_month(self, year: int, month: int) -> list[Budget]:
        stmt = (
            select(Budget)
            .where(Budget.year == year, Budget.month == month)
            .order_by(Budget.expense_category_id, Budget.id)
        )
        return list(self.session.scalars(stmt).all())

    def progress_for_month(self, year: int, month: int) -> list[dict[str, object]]:
        period = Period("budget", *month_bounds(year, month))
        transactions = TransactionService(self.session).list(
            LedgerFilters.for_period(period)
        )
        return aggregation.budget_progress(
            self.list_for_month(year, month), transactions, year, month
        )


class DashboardService:
    """Loads a snapshot of the ledger and hands it to the aggregation functions."""

    def __init__(self, session: Session) -> None:
        self.session = session
        self.movements = MovementService(session)
        self.transactions = TransactionService(session)

    def _snapshot(
        self, period: Optional[Period]
    ) -> tuple[list[Movement], list[Transaction]]:
        filters = LedgerFilters.for_period(period) if period else LedgerFilters()
        return self.movements.list(filters), self.transactions.list(filters)

    def _members(self) -> list[Member]:
        return list(self.session.scalars(select(Member).order_by(Member.id)).all())

    def summary(self, period: Period) -> dict[str, int]:
        movements, transactions = self._snapshot(period)
        totals = aggregation.period_totals(movements, transactions, period)
        totals["movements_count"] = len(movements)
        totals["transactions_count"] = len(transactions)
        return totals

    def account_balances(self) -> list[dict[str, object]]:
        movements, transactions = self._snapshot(None)
        accounts = self.session.scalars(select(Account).order_by(Account.id)).all()
        return [
            {
                "account_id": account.id,
                "name": account.name,
                "type": account.type.value,
                "initial_balance_cents": account.initial_balance_cents,
                "current_balance_cents": aggregation.account_balance(
                    account, movements, transactions
                ),
            }
            for account in accounts
        ]

    def expenses_by_category(self, period: Period) -> list[dict[str, object]]:
        _, transactions = self._snapshot(period)
        categories = self.session.scalars(
            select(ExpenseCategory).order_by(ExpenseCategory.id)
        ).all()
        return aggregation.by_category(transactions, categories)

    def income_by_member(self, period: Period) -> list[dict[str, object]]:
        movements, _ = self._snapshot(period)
        return aggregation.by_member(movements, self._members())

    def expenses_by_recurrence(self, period: Period) -> dict[str, int]:
        _, transactions = self._snapshot(period)
        types = self.session.scalars(select(ExpenseType).order_by(ExpenseType.id)).all()
        return aggregation.by_recurrence_type(transactions, types)

    def family_totals(self, period: Period) -> dict[str, int]:
        movements, transactions = self._snapshot(period)
        members = self._members()
        income = aggregation.family_aggregate(movements, members)
        expenses = aggregation.family_aggregate(transactions, members)
        return {
            "income_cents": income,
            "expense_cents": expenses,
            "balance_cents": income - expenses,
        }

    def member_balances(self, period: Period) -> list[dict[str, object]]:
        movements, transactions = self._snapshot(period)
        return aggregation.member_balances(movements, transactions, self._members())

    def committed(self, today: Optional[date] = None) -> dict[str, object]:
        today = today or local_today()
        stmt = (
            select(Transaction)
            .where(
                Transaction.status == TransactionStatus.pending,
                Transaction.date > current_month(today).end,
            )
            .order_by(Transaction.date, Transaction.id)
        )
        return aggregation.committed_by_month(
            self.session.scalars(stmt).all(), today=today
        )
