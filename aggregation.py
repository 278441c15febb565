"""Report figures derived from already-loaded ledger rows.

Every function here is a pure fold: it reads ORM rows (or any object with the
same attributes), never touches a session and never mutates its inputs. All
money is integer cents, so sums are exact.
"""

from collections import defaultdict
from datetime import date
from typing import Iterable, Optional, Sequence

from models import (
    Account,
    Budget,
    ExpenseCategory,
    ExpenseType,
    Member,
    Movement,
    RecurrenceKind,
    Transaction,
    TransactionStatus,
)
from periods import Period, current_month


def _amount(entry) -> int:
    amount = entry.amount_cents
    if amount < 0:
        raise ValueError(f"Ledger entry {entry.id} has a negative amount")
    return amount


def _total(entries: Iterable) -> int:
    return sum(_amount(entry) for entry in entries)


def _in_period(entries: Iterable, period: Period) -> list:
    return [entry for entry in entries if period.contains(entry.date)]


def account_balance(
    account: Account,
    movements: Iterable[Movement],
    transactions: Iterable[Transaction],
) -> int:
    income = _total(m for m in movements if m.account_id == account.id)
    expenses = _total(t for t in transactions if t.account_id == account.id)
    return account.initial_balance_cents + income - expenses


def period_totals(
    movements: Iterable[Movement],
    transactions: Iterable[Transaction],
    period: Optional[Period] = None,
    *,
    today: Optional[date] = None,
) -> dict[str, int]:
    """Income, expenses and balance for entries dated inside ``period``.

    Both bounds are inclusive. Without a period the calendar month containing
    ``today`` is used (``today`` itself defaults to ``date.today()``).
    """
    period = period or current_month(today)
    income = _total(_in_period(movements, period))
    expenses = _total(_in_period(transactions, period))
    return {
        "income_cents": income,
        "expense_cents": expenses,
        "balance_cents": income - expenses,
    }


def by_category(
    transactions: Iterable[Transaction], categories: Sequence[ExpenseCategory]
) -> list[dict[str, object]]:
    sums: dict[int, int] = defaultdict(int)
    for txn in transactions:
        sums[txn.expense_category_id] += _amount(txn)

    rows: list[dict[str, object]] = []
    for category in categories:
        amount = sums.get(category.id, 0)
        if amount <= 0:
            continue
        rows.append(
            {
                "category_id": category.id,
                "name": category.name,
                "color": category.color,
                "amount_cents": amount,
                "percent": 0.0,
            }
        )
    total = sum(int(row["amount_cents"]) for row in rows)
    for row in rows:
        row["percent"] = int(row["amount_cents"]) / total * 100 if total else 0.0
    rows.sort(key=lambda r: (-int(r["amount_cents"]), str(r["name"])))
    return rows


def by_member(
    movements: Iterable[Movement], members: Sequence[Member]
) -> list[dict[str, object]]:
    sums: dict[Optional[int], int] = defaultdict(int)
    for movement in movements:
        sums[movement.member_id] += _amount(movement)

    known_ids = {member.id for member in members}
    rows: list[dict[str, object]] = [
        {
            "member_id": member.id,
            "name": member.name,
            "color": member.color,
            "amount_cents": sums.get(member.id, 0),
        }
        for member in members
    ]
    # movements whose member is missing from ``members`` count as unassigned too
    unassigned = sum(
        amount for member_id, amount in sums.items() if member_id not in known_ids
    )
    if unassigned > 0:
        rows.append(
            {
                "member_id": None,
                "name": "Unassigned",
                "color": None,
                "amount_cents": unassigned,
            }
        )
    return rows


def by_recurrence_type(
    transactions: Iterable[Transaction], expense_types: Sequence[ExpenseType]
) -> dict[str, int]:
    recurrence_by_type = {t.id: t.recurrence for t in expense_types}
    sums: dict[str, int] = {}
    for kind in RecurrenceKind:
        sums[kind.value] = 0
    for txn in transactions:
        kind = recurrence_by_type.get(txn.expense_type_id)
        if kind is None:
            continue
        sums[RecurrenceKind(kind).value] += _amount(txn)
    return {kind: amount for kind, amount in sums.items() if amount > 0}


def effective_aggregate_to_family(entry, members_by_id: dict[int, Member]) -> bool:
    if entry.aggregate_to_family is not None:
        return bool(entry.aggregate_to_family)
    member = members_by_id.get(entry.member_id) if entry.member_id else None
    if member is not None:
        return bool(member.aggregate_to_family)
    return True


def family_aggregate(entries: Iterable, members: Sequence[Member]) -> int:
    members_by_id = {member.id: member for member in members}
    return _total(
        entry
        for entry in entries
        if effective_aggregate_to_family(entry, members_by_id)
    )


def member_balances(
    movements: Iterable[Movement],
    transactions: Iterable[Transaction],
    members: Sequence[Member],
) -> list[dict[str, object]]:
    income: dict[Optional[int], int] = defaultdict(int)
    expenses: dict[Optional[int], int] = defaultdict(int)
    for movement in movements:
        income[movement.member_id] += _amount(movement)
    for txn in transactions:
        expenses[txn.member_id] += _amount(txn)
    return [
        {
            "member_id": member.id,
            "name": member.name,
            "color": member.color,
            "aggregate_to_family": member.aggregate_to_family,
            "income_cents": income.get(member.id, 0),
            "expense_cents": expenses.get(member.id, 0),
            "balance_cents": income.get(member.id, 0) - expenses.get(member.id, 0),
        }
        for member in members
    ]


def committed_by_month(
    transactions: Iterable[Transaction], *, today: Optional[date] = None
) -> dict[str, object]:
    """Pending expenses already booked for months after the current one."""
    this_month = current_month(today)
    sums: dict[tuple[int, int], int] = defaultdict(int)
    for txn in transactions:
        if txn.status != TransactionStatus.pending or txn.date <= this_month.end:
            continue
        sums[(txn.date.year, txn.date.month)] += _amount(txn)
    commitments = [
        {"year": year, "month": month, "amount_cents": amount}
        for (year, month), amount in sorted(sums.items())
    ]
    return {
        "monthly_commitments": commitments,
        "total_committed_cents": sum(sums.values()),
    }


def budget_progress(
    budgets: Iterable[Budget],
    transactions: Iterable[Transaction],
    year: int,
    month: int,
) -> list[dict[str, object]]:
    spent: dict[Optional[int], int] = defaultdict(int)
    for txn in transactions:
        if txn.date.year != year or txn.date.month != month:
            continue
        amount = _amount(txn)
        spent[txn.expense_category_id] += amount
        spent[None] += amount

    rows: list[dict[str, object]] = []
    for budget in budgets:
        if budget.year != year or budget.month != month:
            continue
        used = spent.get(budget.expense_category_id, 0)
        rows.append(
            {
                "budget_id": budget.id,
                "category_id": budget.expense_category_id,
                "amount_cents": budget.amount_cents,
                "spent_cents": used,
                "remaining_cents": budget.amount_cents - used,
            }
        )
    rows.sort(key=lambda r: (r["category_id"] is not None, r["category_id"] or 0))
    return rows
