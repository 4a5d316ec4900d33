import logging
from typing import Callable, Dict, Optional, Tuple

from Report_Service.report import build_report, by_date, by_range

from .compose import pipe
from .config import Config
from .domain import Customer, Order, OrderPatch
from .errors import NotFoundError, ValidationError
from .frp import ORDER_CREATED, ORDER_STATUS_CHANGED, EventBus, create_event, create_order_event_bus
from .notifications import NotificationEmitter
from .store import EntityStore
from .transforms import (
    apply_filters,
    by_customer_query,
    by_order_query,
    by_status,
    coerce_number,
    compute_total,
    customer_from_record,
    join_customer,
    non_negative,
    now_iso,
    order_from_record,
    order_to_record,
    parse_status,
    today,
    validate_customer_input,
    validate_order_input,
)

logger = logging.getLogger(__name__)

CUSTOMER_LIMIT = 100
ORDER_LIMIT = 200
PRICE_KEY = "price_per_kg"


class CustomerService:
    """Фасад для работы с клиентами"""

    def __init__(self, store: EntityStore, clock: Callable[[], str] = now_iso):
        self.store = store
        self.clock = clock

    def create(self, name, phone=None, note=None) -> Customer:
        fields = validate_customer_input(name, phone, note).unwrap()
        record = {**fields, "created_at": self.clock()}
        new_id = self.store.insert("customers", record)
        logger.info("customer #%s created: %s", new_id, fields["name"])
        return customer_from_record({**record, "id": new_id})

    def get(self, customer_id: int) -> Customer:
        record = self.store.get("customers", customer_id).get_or_raise(
            lambda: NotFoundError(f"customer #{customer_id} not found")
        )
        return customer_from_record(record)

    def search(self, q: str = "") -> Tuple[Customer, ...]:
        """Последние клиенты (новые сверху), с поиском по имени/телефону"""
        records = self.store.scan(
            "customers", predicate=by_customer_query(q), limit=CUSTOMER_LIMIT
        )
        return tuple(map(customer_from_record, records))

    def lookup(self, customer_id: int) -> Optional[Customer]:
        return self.store.get("customers", customer_id).map(customer_from_record).get_or_else(None)


class OrderLifecycleManager:
    """
    Создание и изменение заказов.
    total всегда пересчитывается из weight и price_per_kg;
    уведомления публикуются через шину и не влияют на результат операции.
    """

    def __init__(
        self,
        store: EntityStore,
        bus: EventBus,
        customers: CustomerService,
        clock: Callable[[], str] = now_iso,
    ):
        self.store = store
        self.bus = bus
        self.customers = customers
        self.clock = clock

    def create(self, customer_id, weight=0, price_per_kg=0, due_date=None, note=None) -> Order:
        fields = validate_order_input(customer_id, weight, price_per_kg, due_date, note).unwrap()
        record = {**fields, "status": "received", "created_at": self.clock()}
        new_id = self.store.insert("orders", record)
        order = order_from_record({**record, "id": new_id})

        customer = self.customers.lookup(order.customer_id)
        logger.info("order #%s created, total=%s", order.id, order.total)
        self.bus.publish(
            create_event(
                ORDER_CREATED,
                {
                    "order_id": order.id,
                    "customer_name": customer.name if customer else None,
                },
            )
        )
        return order

    def update(self, order_id: int, patch: OrderPatch) -> Order:
        before = self._load(order_id)
        after = self._apply(before, patch)
        saved = order_from_record(
            self.store.update("orders", order_id, lambda rec: {**rec, **order_to_record(after)})
        )

        if saved.status != before.status:
            logger.info("order #%s: %s -> %s", order_id, before.status.value, saved.status.value)
            self.bus.publish(
                create_event(
                    ORDER_STATUS_CHANGED,
                    {
                        "order_id": order_id,
                        "old": before.status.value,
                        "new": saved.status.value,
                    },
                )
            )
        return saved

    def get(self, order_id: int) -> Dict:
        order = self._load(order_id)
        return join_customer(order, self.customers.lookup(order.customer_id))

    def search(self, q: str = "", status: Optional[str] = None) -> Tuple[Dict, ...]:
        """Заказы с данными клиента, новые сверху, не более ORDER_LIMIT"""
        if status:
            status = parse_status(status).unwrap().value
        cache: Dict[int, Optional[Customer]] = {}

        def joined(record: Dict) -> Dict:
            cid = int(record["customer_id"])
            if cid not in cache:
                cache[cid] = self.customers.lookup(cid)
            return join_customer(order_from_record(record), cache[cid])

        rows = tuple(map(joined, self.store.scan("orders")))
        return apply_filters(rows, by_status(status), by_order_query(q))[:ORDER_LIMIT]

    def _load(self, order_id: int) -> Order:
        record = self.store.get("orders", order_id).get_or_raise(
            lambda: NotFoundError(f"order #{order_id} not found")
        )
        return order_from_record(record)

    @staticmethod
    def _apply(order: Order, patch: OrderPatch) -> Order:
        status = (
            parse_status(patch.status).unwrap()
            if patch.is_set("status") and patch.status not in (None, "")
            else order.status
        )
        weight = (
            non_negative("weight", patch.weight).unwrap()
            if patch.is_set("weight")
            else order.weight
        )
        price = (
            non_negative("price_per_kg", patch.price_per_kg).unwrap()
            if patch.is_set("price_per_kg")
            else order.price_per_kg
        )
        note = str(patch.note or "") if patch.is_set("note") else order.note
        return Order(
            id=order.id,
            customer_id=order.customer_id,
            weight=weight,
            price_per_kg=price,
            total=compute_total(weight, price),
            status=status,
            created_at=order.created_at,
            due_date=order.due_date,
            note=note,
        )


class SettingsService:
    """Настройки магазина (пока одна: цена за кг)"""

    def __init__(self, store: EntityStore, default_price: str = "12000"):
        self.store = store
        self.store.seed_settings({PRICE_KEY: default_price})

    def all(self) -> Dict[str, str]:
        return self.store.settings()

    def price_per_kg(self) -> float:
        return coerce_number(self.store.get_setting(PRICE_KEY).get_or_else(0))

    def set_price_per_kg(self, value) -> Dict[str, str]:
        text = str(value).strip() if value is not None else ""
        if not text:
            raise ValidationError("value required")
        try:
            number = float(text)
        except ValueError:
            raise ValidationError(f"invalid price: {text!r}") from None
        if number < 0:
            raise ValidationError("price_per_kg must not be negative")
        self.store.set_setting(PRICE_KEY, text)
        logger.info("price_per_kg set to %s", text)
        return self.all()


class ReportService:
    """Отчёты за день и за период"""

    def __init__(self, store: EntityStore):
        self.store = store

    def daily(self, date: Optional[str] = None) -> dict:
        day = date or today()
        return self._report(lambda orders: by_date(orders, day), {"date": day})

    def period(self, start: Optional[str], end: Optional[str]) -> dict:
        if not start or not end:
            raise ValidationError("start and end required (YYYY-MM-DD)")
        return self._report(lambda orders: by_range(orders, start, end), {"start": start, "end": end})

    def _report(self, select_orders, meta: Dict) -> dict:
        report_pipeline = pipe(
            select_orders,
            lambda orders: build_report(orders, self._customers_for(orders), meta),
        )
        return report_pipeline(self.store.scan("orders", order="asc"))

    def _customers_for(self, orders) -> Dict[int, Dict]:
        ids = {o.get("customer_id") for o in orders}
        return {
            cid: record
            for cid, record in (
                (cid, self.store.get("customers", cid).get_or_else(None)) for cid in ids
            )
            if record is not None
        }


class LaundryApp:
    """Сборка всех сервисов вокруг одного хранилища"""

    def __init__(
        self,
        store: EntityStore,
        config: Optional[Config] = None,
        clock: Callable[[], str] = now_iso,
    ):
        self.config = config or Config()
        self.store = store
        self.notifications = NotificationEmitter(store, clock)
        self.bus = create_order_event_bus(self.notifications)
        self.customers = CustomerService(store, clock)
        self.orders = OrderLifecycleManager(store, self.bus, self.customers, clock)
        self.settings = SettingsService(store, self.config.default_price_per_kg)
        self.reports = ReportService(store)
