"""
HTTP API прачечной (серверный вариант).

Запуск:  python -m app.server   или   uvicorn app.server:create_app --factory
"""

import logging
from typing import Optional, Union

import uvicorn
from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from laundry.config import Config, configure_logging
from laundry.domain import OrderPatch
from laundry.errors import LaundryError, StoreError
from laundry.service import LaundryApp
from laundry.sql_store import build_store
from laundry.store import EntityStore
from laundry.transforms import customer_to_dict, notification_to_dict
from Report_Service.export import pdf_filename, report_csv, report_filename, report_pdf

logger = logging.getLogger(__name__)

Number = Union[float, str, None]


class CustomerIn(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    note: Optional[str] = None


class OrderIn(BaseModel):
    customer_id: Union[int, str, None] = None
    weight: Number = 0
    price_per_kg: Number = 0
    due_date: Optional[str] = None
    note: Optional[str] = None


class OrderUpdateIn(BaseModel):
    status: Optional[str] = None
    weight: Number = None
    price_per_kg: Number = None
    note: Optional[str] = None


class SettingIn(BaseModel):
    value: Number = None


router = APIRouter(prefix="/api")


def get_laundry(request: Request) -> LaundryApp:
    return request.app.state.laundry


def flatten_report(report: dict) -> dict:
    """{meta, summary, ...} → {date | start, end, summary, breakdown, orders}"""
    return {
        **report["meta"],
        "summary": report["summary"],
        "breakdown": report["breakdown"],
        "orders": report["orders"],
    }


def csv_response(report: dict) -> Response:
    filename = report_filename(report["meta"])
    return Response(
        content=report_csv(report),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


def pdf_response(report: dict) -> Response:
    filename = pdf_filename(report["meta"])
    return Response(
        content=report_pdf(report),
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ============ Настройки ============


@router.get("/settings")
def read_settings(laundry: LaundryApp = Depends(get_laundry)):
    return laundry.settings.all()


@router.put("/settings/price_per_kg")
def write_price(body: SettingIn, laundry: LaundryApp = Depends(get_laundry)):
    return laundry.settings.set_price_per_kg(body.value)


# ============ Клиенты ============


@router.get("/customers")
def list_customers(q: str = "", laundry: LaundryApp = Depends(get_laundry)):
    return [customer_to_dict(c) for c in laundry.customers.search(q)]


@router.post("/customers")
def create_customer(body: CustomerIn, laundry: LaundryApp = Depends(get_laundry)):
    return customer_to_dict(laundry.customers.create(body.name, body.phone, body.note))


# ============ Заказы ============


@router.get("/orders")
def list_orders(
    q: str = "", status: Optional[str] = None, laundry: LaundryApp = Depends(get_laundry)
):
    return list(laundry.orders.search(q, status))


@router.get("/orders/{order_id}")
def read_order(order_id: int, laundry: LaundryApp = Depends(get_laundry)):
    return laundry.orders.get(order_id)


@router.post("/orders")
def create_order(body: OrderIn, laundry: LaundryApp = Depends(get_laundry)):
    order = laundry.orders.create(
        body.customer_id, body.weight, body.price_per_kg, body.due_date, body.note
    )
    return laundry.orders.get(order.id)


@router.put("/orders/{order_id}")
def update_order(order_id: int, body: OrderUpdateIn, laundry: LaundryApp = Depends(get_laundry)):
    patch = OrderPatch.from_payload(body.model_dump(exclude_unset=True))
    order = laundry.orders.update(order_id, patch)
    return laundry.orders.get(order.id)


# ============ Уведомления ============


@router.get("/notifications")
def list_notifications(unread: str = "", laundry: LaundryApp = Depends(get_laundry)):
    emitter = laundry.notifications
    found = emitter.list_unread() if unread == "true" else emitter.list_all()
    return [notification_to_dict(n) for n in found]


@router.put("/notifications/read-all")
def mark_all_notifications_read(laundry: LaundryApp = Depends(get_laundry)):
    return {"updated": laundry.notifications.mark_all_read()}


@router.put("/notifications/{notification_id}/read")
def mark_notification_read(notification_id: int, laundry: LaundryApp = Depends(get_laundry)):
    notification = laundry.notifications.mark_read(notification_id)
    return {"id": notification.id, "read": 1}


# ============ Отчёты ============


@router.get("/reports/daily")
def daily_report(date: Optional[str] = None, laundry: LaundryApp = Depends(get_laundry)):
    return flatten_report(laundry.reports.daily(date))


@router.get("/reports/period")
def period_report(
    start: Optional[str] = None,
    end: Optional[str] = None,
    laundry: LaundryApp = Depends(get_laundry),
):
    return flatten_report(laundry.reports.period(start, end))


@router.get("/reports/daily.csv")
def daily_report_csv(date: Optional[str] = None, laundry: LaundryApp = Depends(get_laundry)):
    return csv_response(laundry.reports.daily(date))


@router.get("/reports/period.csv")
def period_report_csv(
    start: Optional[str] = None,
    end: Optional[str] = None,
    laundry: LaundryApp = Depends(get_laundry),
):
    return csv_response(laundry.reports.period(start, end))


@router.get("/reports/daily.pdf")
def daily_report_pdf(date: Optional[str] = None, laundry: LaundryApp = Depends(get_laundry)):
    return pdf_response(laundry.reports.daily(date))


@router.get("/reports/period.pdf")
def period_report_pdf(
    start: Optional[str] = None,
    end: Optional[str] = None,
    laundry: LaundryApp = Depends(get_laundry),
):
    return pdf_response(laundry.reports.period(start, end))


# ============ Сборка приложения ============


async def handle_laundry_error(request: Request, exc: LaundryError) -> JSONResponse:
    if isinstance(exc, StoreError):
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


def create_app(config: Optional[Config] = None, store: Optional[EntityStore] = None) -> FastAPI:
    config = config or Config.from_env()
    app = FastAPI(title="Laundry")
    app.state.laundry = LaundryApp(store or build_store(config), config)
    app.add_exception_handler(LaundryError, handle_laundry_error)
    app.include_router(router)
    return app


def main() -> None:
    config = Config.from_env()
    configure_logging(config.log_level)
    logger.info("Laundry app listening on http://%s:%s", config.host, config.port)
    uvicorn.run(create_app(config), host=config.host, port=config.port)


if __name__ == "__main__":
    main()
