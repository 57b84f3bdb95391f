import logging
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse, StreamingResponse
from sqlalchemy.orm import Session

from config import get_settings
from database import open_session
from delivery import DirectoryExportDelivery, ExportDelivery
from errors import (
    EmptyExportError,
    ExpenseTrackerError,
    ExportDeliveryError,
    StorageUnavailableError,
    ValidationError,
)
from periods import Month, recent_months, resolve_month
from schemas import AccountIn, CategoryIn, NamedOut, TransactionIn, TransactionOut
from services import (
    ExportFile,
    ExportService,
    InsightsService,
    MetricsService,
    ReferenceService,
    TransactionService,
)

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(title="Expense Tracker")

ERROR_STATUS: dict[type[ExpenseTrackerError], int] = {
    EmptyExportError: status.HTTP_404_NOT_FOUND,
    StorageUnavailableError: status.HTTP_503_SERVICE_UNAVAILABLE,
    ValidationError: status.HTTP_400_BAD_REQUEST,
    ExportDeliveryError: status.HTTP_502_BAD_GATEWAY,
}


@app.exception_handler(ExpenseTrackerError)
async def expense_tracker_error_handler(
    request: Request, exc: ExpenseTrackerError
) -> JSONResponse:
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    for error_type, mapped in ERROR_STATUS.items():
        if isinstance(exc, error_type):
            status_code = mapped
            break
    logger.info(
        "request_failed: path=%s code=%s detail=%s", request.url.path, exc.code, exc
    )
    return JSONResponse(
        status_code=status_code, content={"detail": str(exc), "code": exc.code}
    )


def get_db():
    db = open_session()
    try:
        yield db
    finally:
        db.close()


def get_delivery() -> ExportDelivery:
    return DirectoryExportDelivery(get_settings().export_dir)


def month_from_query(month: Optional[str]) -> Month:
    try:
        return resolve_month(month)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def optional_month_from_query(month: Optional[str]) -> Optional[Month]:
    if not month or month == "all":
        return None
    return month_from_query(month)


def csv_download(export_file: ExportFile) -> StreamingResponse:
    return StreamingResponse(
        iter([export_file.content]),
        media_type="text/csv",
        headers={
            "Content-Disposition": f'attachment; filename="{export_file.file_name}"'
        },
    )


@app.get("/api/summary")
def api_summary(month: Optional[str] = None, db: Session = Depends(get_db)):
    selected = month_from_query(month)
    summary = MetricsService(db).monthly_summary(selected)
    return {"month": selected.key, **summary.as_dict()}


@app.get("/api/accounts/balances")
def api_account_balances(month: Optional[str] = None, db: Session = Depends(get_db)):
    return MetricsService(db).account_balances(optional_month_from_query(month))


@app.get("/api/accounts/{name}/balance")
def api_account_balance(name: str, db: Session = Depends(get_db)):
    balance = MetricsService(db).balance_for_account(name)
    return {"account": name, "balance_cents": balance}


@app.get("/api/categories/breakdown")
def api_category_breakdown(month: Optional[str] = None, db: Session = Depends(get_db)):
    return MetricsService(db).expenses_by_category(month_from_query(month))


@app.get("/api/trend")
def api_trend(
    months: Optional[int] = Query(default=None, ge=1, le=120),
    db: Session = Depends(get_db),
):
    return InsightsService(db).trailing_months_trend(months)


@app.get("/api/archive")
def api_archive(db: Session = Depends(get_db)):
    return InsightsService(db).archive_history()


@app.get("/api/months/recent")
def api_recent_months(count: int = Query(default=24, ge=1, le=120)):
    return [
        {"value": month.key, "label": month.display_name}
        for month in recent_months(count)
    ]


@app.get("/api/transactions", response_model=list[TransactionOut])
def api_transactions(month: Optional[str] = None, db: Session = Depends(get_db)):
    service = TransactionService(db)
    selected = optional_month_from_query(month)
    if selected is None:
        return service.list_all()
    return service.list_for_month(selected)


@app.post(
    "/api/transactions",
    response_model=TransactionOut,
    status_code=status.HTTP_201_CREATED,
)
def api_create_transaction(payload: TransactionIn, db: Session = Depends(get_db)):
    return TransactionService(db).create(payload)


@app.delete("/api/transactions/{transaction_id}")
def api_delete_transaction(transaction_id: int, db: Session = Depends(get_db)):
    try:
        TransactionService(db).delete(transaction_id)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return {"deleted": 1}


@app.delete("/api/months/{month}/transactions")
def api_delete_month(month: str, db: Session = Depends(get_db)):
    selected = month_from_query(month)
    return {"deleted": TransactionService(db).delete_month(selected)}


@app.delete("/api/transactions")
def api_delete_all(db: Session = Depends(get_db)):
    return {"deleted": TransactionService(db).delete_all()}


@app.get("/api/accounts", response_model=list[NamedOut])
def api_accounts(db: Session = Depends(get_db)):
    return ReferenceService(db).list_accounts()


@app.post("/api/accounts", response_model=NamedOut)
def api_add_account(payload: AccountIn, db: Session = Depends(get_db)):
    return ReferenceService(db).add_account(payload.name)


@app.get("/api/categories", response_model=list[NamedOut])
def api_categories(db: Session = Depends(get_db)):
    return ReferenceService(db).list_categories()


@app.post("/api/categories", response_model=NamedOut)
def api_add_category(payload: CategoryIn, db: Session = Depends(get_db)):
    return ReferenceService(db).add_category(payload.name)


@app.delete("/api/categories/{category_id}")
def api_delete_category(category_id: int, db: Session = Depends(get_db)):
    try:
        ReferenceService(db).delete_category(category_id)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return {"deleted": 1}


@app.get("/export/all")
def export_all_download(db: Session = Depends(get_db)):
    return csv_download(ExportService(db).all_time_export())


@app.get("/export/month/{month}")
def export_month_download(month: str, db: Session = Depends(get_db)):
    return csv_download(ExportService(db).monthly_export(month_from_query(month)))


@app.post("/api/exports/all")
def export_all_to_file(
    db: Session = Depends(get_db),
    delivery: ExportDelivery = Depends(get_delivery),
):
    service = ExportService(db, delivery)
    path = service.deliver(service.all_time_export())
    return {"file": str(path)}


@app.post("/api/exports/month/{month}")
def export_month_to_file(
    month: str,
    db: Session = Depends(get_db),
    delivery: ExportDelivery = Depends(get_delivery),
):
    service = ExportService(db, delivery)
    path = service.deliver(service.monthly_export(month_from_query(month)))
    return {"file": str(path)}
