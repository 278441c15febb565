from dataclasses import dataclass

import pytest
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, make_engine
from models import (
    Account,
    AccountType,
    ExpenseCategory,
    ExpenseType,
    IncomeType,
    Member,
    RecurrenceKind,
)


def make_session() -> Session:
    engine = make_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    return SessionLocal()


@dataclass
class Lookups:
    member: Member
    account: Account
    food: ExpenseCategory
    housing: ExpenseCategory
    fixed: ExpenseType
    installment: ExpenseType
    one_time: ExpenseType
    salary: IncomeType


def add_lookups(session: Session) -> Lookups:
    lookups = Lookups(
        member=Member(name="Ana", color="#6366f1", aggregate_to_family=True),
        account=Account(
            name="Checking", type=AccountType.checking, initial_balance_cents=10_000
        ),
        food=ExpenseCategory(name="Food", color="#ef4444"),
        housing=ExpenseCategory(name="Housing", color="#f97316"),
        fixed=ExpenseType(name="Fixed", color="#0ea5e9", recurrence=RecurrenceKind.fixed),
        installment=ExpenseType(
            name="Installment", color="#8b5cf6", recurrence=RecurrenceKind.installment
        ),
        one_time=ExpenseType(
            name="One-time", color="#64748b", recurrence=RecurrenceKind.one_time
        ),
        salary=IncomeType(name="Salary", color="#22c55e"),
    )
    session.add_all(vars(lookups).values())
    session.commit()
    return lookups


@pytest.fixture()
def session():
    db = make_session()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def lookups(session) -> Lookups:
    return add_lookups(session)
