import math
from datetime import datetime
from typing import Callable, Dict, Optional, Tuple

from .domain import Customer, Notification, Order, OrderStatus
from .errors import ValidationError
from .ftypes import Either


def now_iso() -> str:
    """Текущее локальное время в ISO-8601 с точностью до секунды"""
    return datetime.now().isoformat(timespec="seconds")


def today() -> str:
    return now_iso()[:10]


# ============ Числа и суммы ============


def coerce_number(value) -> float:
    """
    Нечисловое или пустое значение превращается в 0 (не ошибка).
    Отрицательные числа возвращаются как есть — их отсекает валидация.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(str(value).strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def compute_total(weight: float, price_per_kg: float) -> float:
    return weight * price_per_kg


def non_negative(field_name: str, value) -> Either[ValidationError, float]:
    number = coerce_number(value)
    if number < 0:
        return Either.left(ValidationError(f"{field_name} must not be negative"))
    return Either.right(number)


# ============ Валидация входных данных (Either) ============


def validate_customer_input(name, phone=None, note=None) -> Either[ValidationError, dict]:
    clean_name = (name or "").strip() if isinstance(name, str) else ""
    if not clean_name:
        return Either.left(ValidationError("name required"))
    return Either.right(
        {"name": clean_name, "phone": str(phone or ""), "note": str(note or "")}
    )


def parse_customer_id(customer_id) -> Either[ValidationError, int]:
    if customer_id is None or customer_id == "" or customer_id == 0:
        return Either.left(ValidationError("customer_id required"))
    try:
        parsed = int(str(customer_id).strip())
    except ValueError:
        return Either.left(ValidationError(f"invalid customer_id: {customer_id!r}"))
    if parsed <= 0:
        return Either.left(ValidationError(f"invalid customer_id: {customer_id!r}"))
    return Either.right(parsed)


def parse_status(value) -> Either[ValidationError, OrderStatus]:
    if isinstance(value, OrderStatus):
        return Either.right(value)
    try:
        return Either.right(OrderStatus(str(value).strip().lower()))
    except ValueError:
        allowed = ", ".join(s.value for s in OrderStatus)
        return Either.left(
            ValidationError(f"unknown status {value!r} (expected one of: {allowed})")
        )


def validate_order_input(
    customer_id, weight, price_per_kg, due_date=None, note=None
) -> Either[ValidationError, dict]:
    """
    Проверяет данные нового заказа → Either[ошибка, очищенные поля]
    Первая найденная ошибка побеждает
    """
    return parse_customer_id(customer_id).bind(
        lambda cid: non_negative("weight", weight).bind(
            lambda w: non_negative("price_per_kg", price_per_kg).map(
                lambda p: {
                    "customer_id": cid,
                    "weight": w,
                    "price_per_kg": p,
                    "total": compute_total(w, p),
                    "due_date": due_date or None,
                    "note": str(note or ""),
                }
            )
        )
    )


# ============ Записи хранилища ⇄ сущности ============


def customer_from_record(record: Dict) -> Customer:
    return Customer(
        id=int(record["id"]),
        name=str(record["name"]),
        phone=str(record.get("phone") or ""),
        note=str(record.get("note") or ""),
        created_at=str(record.get("created_at") or ""),
    )


def order_from_record(record: Dict) -> Order:
    return Order(
        id=int(record["id"]),
        customer_id=int(record["customer_id"]),
        weight=coerce_number(record.get("weight")),
        price_per_kg=coerce_number(record.get("price_per_kg")),
        total=coerce_number(record.get("total")),
        status=OrderStatus(record.get("status") or OrderStatus.RECEIVED.value),
        created_at=str(record.get("created_at") or ""),
        due_date=record.get("due_date"),
        note=str(record.get("note") or ""),
    )


def order_to_record(order: Order) -> Dict:
    return {
        "id": order.id,
        "customer_id": order.customer_id,
        "weight": order.weight,
        "price_per_kg": order.price_per_kg,
        "total": order.total,
        "status": order.status.value,
        "created_at": order.created_at,
        "due_date": order.due_date,
        "note": order.note,
    }


def notification_from_record(record: Dict) -> Notification:
    order_id = record.get("order_id")
    return Notification(
        id=int(record["id"]),
        type=str(record["type"]),
        message=str(record["message"]),
        order_id=int(order_id) if order_id is not None else None,
        read=bool(record.get("read")),
        created_at=str(record.get("created_at") or ""),
    )


def customer_to_dict(customer: Customer) -> Dict:
    return {
        "id": customer.id,
        "name": customer.name,
        "phone": customer.phone,
        "note": customer.note,
        "created_at": customer.created_at,
    }


def notification_to_dict(notification: Notification) -> Dict:
    return {
        "id": notification.id,
        "type": notification.type,
        "message": notification.message,
        "order_id": notification.order_id,
        "read": notification.read,
        "created_at": notification.created_at,
    }


def join_customer(order: Order, customer: Optional[Customer]) -> Dict:
    """Строка заказа с именем и телефоном клиента (LEFT JOIN)"""
    return {
        **order_to_record(order),
        "customer_name": customer.name if customer else None,
        "customer_phone": customer.phone if customer else None,
    }


# ============ Замыкания-фильтры (HOF) ============


def by_status(status: Optional[str]) -> Callable[[Dict], bool]:
    """Фильтр строк заказов по статусу (пустой статус — всё)"""
    return lambda row: not status or row.get("status") == status


def by_customer_query(q: str) -> Callable[[Dict], bool]:
    """Поиск клиента: подстрока имени или телефона без учёта регистра"""
    needle = (q or "").strip().lower()
    return lambda rec: not needle or any(
        needle in str(rec.get(key) or "").lower() for key in ("name", "phone")
    )


def by_order_query(q: str) -> Callable[[Dict], bool]:
    """Поиск заказа: имя/телефон клиента или точный номер заказа"""
    needle = (q or "").strip().lower()

    def matches(row: Dict) -> bool:
        if not needle:
            return True
        if str(row.get("id")) == needle:
            return True
        return any(
            needle in str(row.get(key) or "").lower()
            for key in ("customer_name", "customer_phone")
        )

    return matches


def unread(record: Dict) -> bool:
    return not record.get("read")


def apply_filters(rows: Tuple[Dict, ...], *predicates) -> Tuple[Dict, ...]:
    """Композиция всех фильтров"""
    return tuple(filter(lambda r: all(p(r) for p in predicates), rows))
