from typing import Dict, Iterable, Iterator


## ленивый генератор: заказы, созданные в указанный день (ГГГГ-ММ-ДД)
## сравнение по префиксу ISO-строки created_at
def iter_orders_by_day(orders: Iterable[Dict], day: str) -> Iterator[Dict]:
    for order in orders:
        if str(order.get("created_at") or "").startswith(day):
            yield order


## заказы, у которых дата создания лежит в [start, end] включительно
## строки ГГГГ-ММ-ДД сортируются лексикографически в календарном порядке
def iter_orders_in_range(orders: Iterable[Dict], start: str, end: str) -> Iterator[Dict]:
    for order in orders:
        day = str(order.get("created_at") or "")[:10]
        if start <= day <= end:
            yield order
