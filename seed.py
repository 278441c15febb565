import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from config import get_settings
from database import session_scope
from models import (
    Account,
    AccountType,
    ExpenseCategory,
    ExpenseType,
    IncomeCategory,
    IncomeType,
    Member,
    RecurrenceKind,
)

logger = logging.getLogger(__name__)

DEFAULT_EXPENSE_CATEGORIES = [
    ("Food", "#ef4444"),
    ("Housing", "#f97316"),
    ("Transport", "#eab308"),
    ("Health", "#10b981"),
    ("Leisure", "#06b6d4"),
    ("Education", "#6366f1"),
    ("Clothing", "#ec4899"),
    ("Groceries", "#84cc16"),
    ("Bills", "#f59e0b"),
    ("Other expenses", "#64748b"),
]

DEFAULT_INCOME_CATEGORIES = [
    ("Salary", "#22c55e"),
    ("Meal voucher", "#14b8a6"),
    ("Freelance", "#a855f7"),
    ("Investments", "#f97316"),
    ("Other income", "#64748b"),
]

DEFAULT_EXPENSE_TYPES = [
    ("Fixed", "#0ea5e9", RecurrenceKind.fixed),
    ("Installment", "#8b5cf6", RecurrenceKind.installment),
    ("One-time", "#64748b", RecurrenceKind.one_time),
]

DEFAULT_INCOME_TYPES = [
    ("Recurring", "#22c55e"),
    ("Occasional", "#eab308"),
]


def _is_empty(session: Session, model) -> bool:
    return (session.execute(select(func.count()).select_from(model)).scalar_one() or 0) == 0


def seed_defaults(session: Session) -> dict[str, int]:
    """Insert default lookup rows into empty tables. Returns rows added per table."""
    added: dict[str, int] = {}
    if _is_empty(session, ExpenseCategory):
        session.add_all(
            ExpenseCategory(name=name, color=color)
            for name, color in DEFAULT_EXPENSE_CATEGORIES
        )
        added["expense_categories"] = len(DEFAULT_EXPENSE_CATEGORIES)
    if _is_empty(session, IncomeCategory):
        session.add_all(
            IncomeCategory(name=name, color=color)
            for name, color in DEFAULT_INCOME_CATEGORIES
        )
        added["income_categories"] = len(DEFAULT_INCOME_CATEGORIES)
    if _is_empty(session, ExpenseType):
        session.add_all(
            ExpenseType(name=name, color=color, recurrence=recurrence)
            for name, color, recurrence in DEFAULT_EXPENSE_TYPES
        )
        added["expense_types"] = len(DEFAULT_EXPENSE_TYPES)
    if _is_empty(session, IncomeType):
        session.add_all(
            IncomeType(name=name, color=color) for name, color in DEFAULT_INCOME_TYPES
        )
        added["income_types"] = len(DEFAULT_INCOME_TYPES)
    if _is_empty(session, Member):
        session.add(Member(name="Me", color="#6366f1", aggregate_to_family=True))
        added["members"] = 1
    if _is_empty(session, Account):
        session.add(
            Account(name="Wallet", type=AccountType.cash, initial_balance_cents=0)
        )
        added["accounts"] = 1
    session.flush()
    return added


def main() -> None:
    logging.basicConfig(level=get_settings().log_level)
    with session_scope() as session:
        added = seed_defaults(session)
    if added:
        for table, count in added.items():
            logger.info("seed: table=%s rows_added=%s", table, count)
    else:
        logger.info("seed: nothing to do, defaults already present")


if __name__ == "__main__":
    main()
