from datetime import date

import pytest

from errors import NotFoundError, ValidationError
from models import Member, TransactionStatus
from periods import Period
from schemas import BudgetIn, MovementIn, TransactionIn
from services import (
    BudgetService,
    DashboardService,
    LedgerFilters,
    MemberService,
    MovementService,
    TransactionService,
)

MARCH = Period("custom", date(2025, 3, 1), date(2025, 3, 31))


def _expense(lookups, **overrides) -> TransactionIn:
    data = dict(
        description="Groceries",
        amount_cents=4_500,
        date=date(2025, 3, 12),
        account_id=lookups.account.id,
        member_id=lookups.member.id,
        expense_type_id=lookups.one_time.id,
        expense_category_id=lookups.food.id,
    )
    data.update(overrides)
    return TransactionIn(**data)


def _income(lookups, **overrides) -> MovementIn:
    data = dict(
        description="Salary",
        amount_cents=500_000,
        date=date(2025, 3, 5),
        account_id=lookups.account.id,
        member_id=lookups.member.id,
        income_type_id=lookups.salary.id,
    )
    data.update(overrides)
    return MovementIn(**data)


def test_create_plain_expense_is_single_row(session, lookups):
    rows = TransactionService(session).create(_expense(lookups))
    assert len(rows) == 1
    txn = rows[0]
    assert txn.id is not None
    assert txn.status == TransactionStatus.pending
    assert txn.installment_number is None
    assert txn.parent_transaction_id is None


def test_create_installment_expense_expands(session, lookups):
    rows = TransactionService(session).create(
        _expense(
            lookups,
            amount_cents=120_000,
            expense_type_id=lookups.installment.id,
            total_installments=12,
        )
    )
    assert len(rows) == 12
    assert rows[-1].date == date(2026, 2, 12)
    assert sum(r.amount_cents for r in rows) == 120_000


def test_installment_type_requires_two_or_more(session, lookups):
    service = TransactionService(session)
    with pytest.raises(ValidationError):
        service.create(_expense(lookups, expense_type_id=lookups.installment.id))
    with pytest.raises(ValidationError):
        service.create(
            _expense(
                lookups, expense_type_id=lookups.installment.id, total_installments=1
            )
        )
    assert service.list() == []


def test_installments_need_installment_type(session, lookups):
    with pytest.raises(ValidationError):
        TransactionService(session).create(
            _expense(lookups, expense_type_id=lookups.fixed.id, total_installments=3)
        )


def test_unknown_foreign_keys_are_rejected_before_writing(session, lookups):
    service = TransactionService(session)
    with pytest.raises(ValidationError):
        service.create(_expense(lookups, expense_category_id=999))
    with pytest.raises(ValidationError):
        service.create(_expense(lookups, member_id=999))
    with pytest.raises(ValidationError):
        MovementService(session).create(_income(lookups, account_id=999))
    assert service.list() == []


def test_update_status_and_missing_ids(session, lookups):
    service = TransactionService(session)
    txn = service.create(_expense(lookups))[0]

    updated = service.update_status(txn.id, TransactionStatus.paid)
    assert updated.status == TransactionStatus.paid

    with pytest.raises(NotFoundError):
        service.update_status(9_999, TransactionStatus.paid)
    with pytest.raises(NotFoundError):
        service.delete(9_999)
    with pytest.raises(NotFoundError):
        MovementService(session).delete(9_999)


def test_deleting_parent_keeps_installment_siblings(session, lookups):
    service = TransactionService(session)
    rows = service.create(
        _expense(lookups, expense_type_id=lookups.installment.id, total_installments=3)
    )
    parent_id = rows[0].id

    service.delete(parent_id)

    remaining = service.installment_group(parent_id)
    assert [r.installment_number for r in remaining] == [2, 3]


def test_list_filters_compose(session, lookups):
    other = Member(name="Bruno", color="#222222", aggregate_to_family=True)
    session.add(other)
    session.commit()

    service = TransactionService(session)
    service.create(_expense(lookups, date=date(2025, 3, 1)))
    service.create(_expense(lookups, date=date(2025, 4, 1)))
    service.create(_expense(lookups, member_id=other.id, expense_category_id=lookups.housing.id))
    paid = service.create(_expense(lookups, description="Paid"))[0]
    service.update_status(paid.id, TransactionStatus.paid)

    march = service.list(LedgerFilters(start=MARCH.start, end=MARCH.end))
    assert len(march) == 3
    mine_pending = service.list(
        LedgerFilters(
            member_id=lookups.member.id,
            status=TransactionStatus.pending,
            start=MARCH.start,
            end=MARCH.end,
        )
    )
    assert [t.date for t in mine_pending] == [date(2025, 3, 1)]
    housing = service.list(LedgerFilters(category_id=lookups.housing.id))
    assert [t.member_id for t in housing] == [other.id]


def test_dashboard_summary_and_balances(session, lookups):
    MovementService(session).create(_income(lookups, amount_cents=5_000))
    MovementService(session).create(_income(lookups, amount_cents=7_000, account_id=None))
    TransactionService(session).create(_expense(lookups, amount_cents=3_000))

    dashboard = DashboardService(session)
    summary = dashboard.summary(MARCH)
    assert summary == {
        "income_cents": 12_000,
        "expense_cents": 3_000,
        "balance_cents": 9_000,
        "movements_count": 2,
        "transactions_count": 1,
    }

    balances = dashboard.account_balances()
    assert balances[0]["current_balance_cents"] == 10_000 + 5_000 - 3_000


def test_dashboard_family_totals_respect_overrides(session, lookups):
    lookups.member.aggregate_to_family = False
    session.commit()
    TransactionService(session).create(_expense(lookups, amount_cents=1_000))
    TransactionService(session).create(
        _expense(lookups, amount_cents=2_000, aggregate_to_family=True)
    )

    totals = DashboardService(session).family_totals(MARCH)
    assert totals["expense_cents"] == 2_000


def test_dashboard_committed_lists_future_installments(session, lookups):
    TransactionService(session).create(
        _expense(
            lookups,
            amount_cents=30_000,
            expense_type_id=lookups.installment.id,
            total_installments=3,
        )
    )
    committed = DashboardService(session).committed(today=date(2025, 3, 20))
    assert committed["monthly_commitments"] == [
        {"year": 2025, "month": 4, "amount_cents": 10_000},
        {"year": 2025, "month": 5, "amount_cents": 10_000},
    ]
    assert committed["total_committed_cents"] == 20_000


def test_budget_upsert_and_progress(session, lookups):
    budgets = BudgetService(session)
    first = budgets.upsert(
        BudgetIn(year=2025, month=3, expense_category_id=lookups.food.id, amount_cents=10_000)
    )
    second = budgets.upsert(
        BudgetIn(year=2025, month=3, expense_category_id=lookups.food.id, amount_cents=8_000)
    )
    assert first.id == second.id
    assert len(budgets.list_for_month(2025, 3)) == 1

    TransactionService(session).create(_expense(lookups, amount_cents=4_500))
    progress = budgets.progress_for_month(2025, 3)
    assert progress == [
        {
            "budget_id": first.id,
            "category_id": lookups.food.id,
            "amount_cents": 8_000,
            "spent_cents": 4_500,
            "remaining_cents": 3_500,
        }
    ]

    with pytest.raises(ValidationError):
        budgets.upsert(BudgetIn(year=2025, month=3, expense_category_id=999, amount_cents=1))


def test_member_family_default_update(session, lookups):
    members = MemberService(session)
    member = members.set_aggregate_to_family(lookups.member.id, False)
    assert member.aggregate_to_family is False

    with pytest.raises(NotFoundError):
        members.set_aggregate_to_family(9_999, True)


def test_typed_amount_goes_through_parser(session, lookups):
    data = _income(lookups).model_dump()
    del data["amount_cents"]
    data["amount"] = "R$ 1.500,75"
    movement = MovementService(session).create(MovementIn(**data))
    assert movement.amount_cents == 150_075
