import datetime as dt
from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from models import TransactionStatus
from money import parse_amount


def _amount_to_cents(data):
    """Accept a typed ``amount`` ("1.234,56", "R$ 10") in place of ``amount_cents``."""
    if not isinstance(data, dict) or "amount" not in data:
        return data
    data = dict(data)
    amount = data.pop("amount")
    if data.get("amount_cents") is not None:
        raise ValueError("Send either amount or amount_cents, not both")
    data["amount_cents"] = parse_amount(str(amount))
    return data


class MovementIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    description: str = Field(..., min_length=1, max_length=255)
    amount_cents: int = Field(..., gt=0)
    date: dt.date
    account_id: Optional[int] = None
    member_id: Optional[int] = None
    income_type_id: int
    income_category_id: Optional[int] = None
    aggregate_to_family: Optional[bool] = None

    @model_validator(mode="before")
    @classmethod
    def coerce_amount(cls, data):
        return _amount_to_cents(data)


class TransactionIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    description: str = Field(..., min_length=1, max_length=255)
    amount_cents: int = Field(..., gt=0)
    date: dt.date
    account_id: Optional[int] = None
    member_id: int
    expense_type_id: int
    expense_category_id: int
    status: TransactionStatus = TransactionStatus.pending
    aggregate_to_family: Optional[bool] = None
    total_installments: Optional[int] = Field(default=None, ge=1, le=360)

    @model_validator(mode="before")
    @classmethod
    def coerce_amount(cls, data):
        return _amount_to_cents(data)


class TransactionStatusIn(BaseModel):
    status: TransactionStatus


class MemberFamilyIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    aggregate_to_family: bool


class BudgetIn(BaseModel):
    year: int = Field(..., ge=1970, le=3000)
    month: int = Field(..., ge=1, le=12)
    expense_category_id: Optional[int] = None
    amount_cents: int = Field(..., ge=0)


class MemberOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    color: str
    aggregate_to_family: bool


class MovementOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    description: str
    amount_cents: int
    date: date
    account_id: Optional[int]
    member_id: Optional[int]
    income_type_id: int
    income_category_id: Optional[int]
    aggregate_to_family: Optional[bool]


class TransactionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    description: str
    amount_cents: int
    date: date
    account_id: Optional[int]
    member_id: int
    expense_type_id: int
    expense_category_id: int
    status: TransactionStatus
    aggregate_to_family: Optional[bool]
    installment_number: Optional[int]
    total_installments: Optional[int]
    parent_transaction_id: Optional[int]


class BudgetOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    year: int
    month: int
    expense_category_id: Optional[int]
    amount_cents: int
