import logging
from datetime import date
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from sqlalchemy.orm import Session

from config import get_settings
from database import get_sessionmaker
from errors import NotFoundError, PersistenceError, ValidationError
from models import TransactionStatus
from periods import Period, local_today, resolve_period
from schemas import (
    BudgetIn,
    BudgetOut,
    MemberFamilyIn,
    MemberOut,
    MovementIn,
    MovementOut,
    TransactionIn,
    TransactionOut,
    TransactionStatusIn,
)
from services import (
    BudgetService,
    DashboardService,
    LedgerFilters,
    MemberService,
    MovementService,
    TransactionService,
)

logging.basicConfig(level=get_settings().log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="Family Budget")


def get_db():
    db = get_sessionmaker()()
    try:
        yield db
    finally:
        db.close()


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{location}: {error.get('msg')}" if location else error.get("msg"))
    return JSONResponse(status_code=400, content={"detail": "; ".join(messages)})


def period_from_request(request: Request) -> Period:
    period_slug = request.query_params.get("period")
    start = request.query_params.get("start")
    end = request.query_params.get("end")
    try:
        return resolve_period(period_slug, start, end, today=local_today())
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def _int_param(request: Request, name: str) -> Optional[int]:
    raw = request.query_params.get(name)
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f"Invalid {name}") from exc


def _date_param(request: Request, name: str) -> Optional[date]:
    raw = request.query_params.get(name)
    if not raw:
        return None
    try:
        return date.fromisoformat(raw[:10])
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f"Invalid {name}") from exc


def filters_from_request(request: Request) -> LedgerFilters:
    status_param = request.query_params.get("status")
    status = None
    if status_param:
        try:
            status = TransactionStatus(status_param)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail="Invalid status") from exc
    return LedgerFilters(
        account_id=_int_param(request, "accountId"),
        member_id=_int_param(request, "memberId"),
        status=status,
        category_id=_int_param(request, "categoryId"),
        type_id=_int_param(request, "typeId"),
        start=_date_param(request, "startDate"),
        end=_date_param(request, "endDate"),
    )


@app.get("/api/movements", response_model=list[MovementOut])
def list_movements(request: Request, db: Session = Depends(get_db)):
    return MovementService(db).list(filters_from_request(request))


@app.post("/api/movements", status_code=201, response_model=MovementOut)
def create_movement(data: MovementIn, db: Session = Depends(get_db)):
    try:
        return MovementService(db).create(data)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.delete("/api/movements/{movement_id}", status_code=204)
def delete_movement(movement_id: int, db: Session = Depends(get_db)):
    try:
        MovementService(db).delete(movement_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return Response(status_code=204)


@app.get("/api/transactions", response_model=list[TransactionOut])
def list_transactions(request: Request, db: Session = Depends(get_db)):
    return TransactionService(db).list(filters_from_request(request))


@app.post("/api/transactions", status_code=201)
def create_transaction(data: TransactionIn, db: Session = Depends(get_db)):
    try:
        rows = TransactionService(db).create(data)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except PersistenceError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    payload = [TransactionOut.model_validate(row).model_dump(mode="json") for row in rows]
    if len(payload) == 1 and rows[0].installment_number is None:
        return payload[0]
    return payload


@app.get(
    "/api/transactions/{transaction_id}/installments",
    response_model=list[TransactionOut],
)
def transaction_installments(transaction_id: int, db: Session = Depends(get_db)):
    service = TransactionService(db)
    try:
        txn = service.get(transaction_id)
        if txn.parent_transaction_id is None:
            return [txn]
        return service.installment_group(txn.parent_transaction_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@app.patch("/api/transactions/{transaction_id}/status", response_model=TransactionOut)
def update_transaction_status(
    transaction_id: int, data: TransactionStatusIn, db: Session = Depends(get_db)
):
    try:
        return TransactionService(db).update_status(transaction_id, data.status)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@app.delete("/api/transactions/{transaction_id}", status_code=204)
def delete_transaction(transaction_id: int, db: Session = Depends(get_db)):
    try:
        TransactionService(db).delete(transaction_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return Response(status_code=204)


def _year_month(request: Request) -> tuple[int, int]:
    today = local_today()
    year = _int_param(request, "year")
    month = _int_param(request, "month")
    if year is None:
        year = today.year
    if month is None:
        month = today.month
    if not 1 <= month <= 12:
        raise HTTPException(status_code=400, detail="Invalid month")
    return year, month


@app.patch("/api/members/{member_id}", response_model=MemberOut)
def update_member(member_id: int, data: MemberFamilyIn, db: Session = Depends(get_db)):
    try:
        return MemberService(db).set_aggregate_to_family(
            member_id, data.aggregate_to_family
        )
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@app.get("/api/budgets", response_model=list[BudgetOut])
def list_budgets(request: Request, db: Session = Depends(get_db)):
    year, month = _year_month(request)
    return BudgetService(db).list_for_month(year, month)


@app.post("/api/budgets", status_code=201, response_model=BudgetOut)
def upsert_budget(data: BudgetIn, db: Session = Depends(get_db)):
    try:
        return BudgetService(db).upsert(data)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.get("/api/dashboard/summary")
def dashboard_summary(request: Request, db: Session = Depends(get_db)):
    return DashboardService(db).summary(period_from_request(request))


@app.get("/api/dashboard/accounts")
def dashboard_accounts(db: Session = Depends(get_db)):
    return DashboardService(db).account_balances()


@app.get("/api/dashboard/categories")
def dashboard_categories(request: Request, db: Session = Depends(get_db)):
    return DashboardService(db).expenses_by_category(period_from_request(request))


@app.get("/api/dashboard/members")
def dashboard_members(request: Request, db: Session = Depends(get_db)):
    period = period_from_request(request)
    service = DashboardService(db)
    return {
        "income_by_member": service.income_by_member(period),
        "balances": service.member_balances(period),
    }


@app.get("/api/dashboard/recurrence")
def dashboard_recurrence(request: Request, db: Session = Depends(get_db)):
    return DashboardService(db).expenses_by_recurrence(period_from_request(request))


@app.get("/api/dashboard/family")
def dashboard_family(request: Request, db: Session = Depends(get_db)):
    return DashboardService(db).family_totals(period_from_request(request))


@app.get("/api/dashboard/committed")
def dashboard_committed(db: Session = Depends(get_db)):
    return DashboardService(db).committed(local_today())


@app.get("/api/dashboard/budgets")
def dashboard_budgets(request: Request, db: Session = Depends(get_db)):
    year, month = _year_month(request)
    return BudgetService(db).progress_for_month(year, month)


def main():
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=False)


if __name__ == "__main__":
    main()
