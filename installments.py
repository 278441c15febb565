import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from errors import PersistenceError, ValidationError
from models import Transaction
from money import split_amount
from periods import add_months
from schemas import TransactionIn

logger = logging.getLogger(__name__)


class InstallmentEngine:
    """Expands one installment purchase into its dated ledger rows.

    All rows of a group are written in a single database transaction. Row #1
    is the parent: its id is stamped into ``parent_transaction_id`` on every
    row of the group, itself included.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def build(self, data: TransactionIn, total_installments: int) -> list[Transaction]:
        amounts = split_amount(data.amount_cents, total_installments)
        rows: list[Transaction] = []
        for number, amount_cents in enumerate(amounts, start=1):
            rows.append(
                Transaction(
                    description=data.description,
                    amount_cents=amount_cents,
                    date=add_months(data.date, number - 1),
                    account_id=data.account_id,
                    member_id=data.member_id,
                    expense_type_id=data.expense_type_id,
                    expense_category_id=data.expense_category_id,
                    status=data.status,
                    aggregate_to_family=data.aggregate_to_family,
                    installment_number=number,
                    total_installments=total_installments,
                )
            )
        return rows

    def expand(self, data: TransactionIn, total_installments: int) -> list[Transaction]:
        if total_installments < 2:
            raise ValidationError("Installment purchases need at least 2 installments")
        rows = self.build(data, total_installments)
        try:
            self.session.add_all(rows)
            self.session.flush()
            parent_id = rows[0].id
            for row in rows:
                row.parent_transaction_id = parent_id
            self.session.flush()
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.error(
                "installment_group_failed: installments=%s description=%r error=%s",
                total_installments,
                data.description,
                exc,
            )
            raise PersistenceError(
                f"Could not save the {total_installments} installments; nothing was saved"
            ) from exc

        logger.info(
            "installment_group_created: parent_id=%s installments=%s total_cents=%s",
            parent_id,
            total_installments,
            data.amount_cents,
        )
        return sorted(rows, key=lambda row: row.installment_number)
