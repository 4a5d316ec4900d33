from typing import Dict, Iterable, List, Optional, Tuple
from functools import reduce

from laundry.lazy import iter_orders_by_day, iter_orders_in_range


# ============ Отбор заказов ============


def by_date(orders: Iterable[Dict], date: str) -> Tuple[Dict, ...]:
    """Заказы, созданные в день date (ГГГГ-ММ-ДД)"""
    return tuple(iter_orders_by_day(orders, date))


def by_range(orders: Iterable[Dict], start: str, end: str) -> Tuple[Dict, ...]:
    """Заказы за период [start, end] включительно"""
    return tuple(iter_orders_in_range(orders, start, end))


# ============ Агрегация ============


def summarize(orders: Tuple[Dict, ...]) -> dict:
    """
    Сводка: количество, выручка (Σ total), вес (Σ weight).
    Пустой набор → нули
    """

    def accumulate(acc: dict, order: Dict) -> dict:
        return {
            "count": acc["count"] + 1,
            "total_revenue": acc["total_revenue"] + float(order.get("total") or 0),
            "total_weight": acc["total_weight"] + float(order.get("weight") or 0),
        }

    return reduce(accumulate, orders, {"count": 0, "total_revenue": 0, "total_weight": 0})


def breakdown(orders: Tuple[Dict, ...]) -> List[dict]:
    """
    Разбивка по статусам: {status, count, sum_total}.
    Порядок групп — порядок первого появления статуса во входных данных
    """

    def accumulate_by_status(acc: dict, order: Dict) -> dict:
        status = order.get("status")
        group = acc.get(status, {"status": status, "count": 0, "sum_total": 0})
        return {
            **acc,
            status: {
                **group,
                "count": group["count"] + 1,
                "sum_total": group["sum_total"] + float(order.get("total") or 0),
            },
        }

    return list(reduce(accumulate_by_status, orders, {}).values())


# ============ Композитный отчёт ============


def build_report(
    orders: Tuple[Dict, ...], customers: Dict[int, Dict], meta: Dict
) -> dict:
    """
    Отчёт: meta + summary + breakdown + строки заказов с данными клиента
    (от старых к новым, для выгрузки)
    """

    def joined(order: Dict) -> Dict:
        customer: Optional[Dict] = customers.get(order.get("customer_id"))
        return {
            **order,
            "customer_name": customer.get("name") if customer else None,
            "customer_phone": customer.get("phone") if customer else None,
        }

    ordered = sorted(orders, key=lambda o: (o.get("created_at") or "", o.get("id") or 0))
    return {
        "meta": dict(meta),
        "summary": summarize(orders),
        "breakdown": breakdown(orders),
        "orders": [joined(o) for o in ordered],
    }
