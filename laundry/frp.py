import logging
import uuid
from dataclasses import dataclass
from typing import Callable, Tuple

from .domain import Event
from .transforms import now_iso

logger = logging.getLogger(__name__)

ORDER_CREATED = "ORDER_CREATED"
ORDER_STATUS_CHANGED = "ORDER_STATUS_CHANGED"

Handler = Callable[[Event], object]


@dataclass(frozen=True)
class EventBus:
    """
    Иммутабельная синхронная шина событий.
    Обработчики вызываются по порядку подписки в том же потоке;
    исключение обработчика логируется и не доходит до публикующего.
    """

    subscribers: Tuple[Tuple[str, Handler], ...] = ()

    def subscribe(self, event_name: str, handler: Handler) -> "EventBus":
        """Возвращает новую шину с добавленным подписчиком"""
        return EventBus(subscribers=self.subscribers + ((event_name, handler),))

    def publish(self, event: Event) -> int:
        """
        Публикует событие. Возвращает число обработчиков, отработавших без ошибки
        """
        delivered = 0
        for name, handler in self.subscribers:
            if name != event.name:
                continue
            try:
                handler(event)
            except Exception:
                logger.warning(
                    "handler for %s failed, event %s dropped", event.name, event.id, exc_info=True
                )
                continue
            delivered += 1
        return delivered


def create_event(name: str, payload: dict) -> Event:
    """Создаёт событие с автоматической меткой времени"""
    return Event(id=str(uuid.uuid4()), ts=now_iso(), name=name, payload=payload)


# ============ Обработчики: события заказа → уведомления ============


def created_message(order_id: int, customer_name) -> str:
    return f"Order #{order_id} created for {customer_name or 'customer'}"


def status_message(order_id: int, old: str, new: str) -> str:
    return f"Order #{order_id} status: {old} → {new}"


def notify_order_created(emitter) -> Handler:
    """Замыкание над эмиттером: ORDER_CREATED → уведомление типа order"""

    def handle(event: Event):
        order_id = event.payload["order_id"]
        return emitter.emit(
            "order",
            created_message(order_id, event.payload.get("customer_name")),
            order_id,
        )

    return handle


def notify_status_changed(emitter) -> Handler:
    """ORDER_STATUS_CHANGED → уведомление о смене статуса"""

    def handle(event: Event):
        order_id = event.payload["order_id"]
        return emitter.emit(
            "order",
            status_message(order_id, event.payload["old"], event.payload["new"]),
            order_id,
        )

    return handle


def create_order_event_bus(emitter) -> EventBus:
    """Шина, превращающая события жизненного цикла заказа в уведомления"""
    bus = EventBus()
    bus = bus.subscribe(ORDER_CREATED, notify_order_created(emitter))
    bus = bus.subscribe(ORDER_STATUS_CHANGED, notify_status_changed(emitter))
    return bus
