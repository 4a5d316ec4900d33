import logging
from typing import Callable, Optional, Tuple

from .domain import Notification
from .errors import NotFoundError
from .store import EntityStore
from .transforms import notification_from_record, now_iso, unread

logger = logging.getLogger(__name__)

UNREAD_LIMIT = 100
ALL_LIMIT = 200


class NotificationEmitter:
    """Журнал уведомлений: дописывание и отметка «прочитано»"""

    def __init__(self, store: EntityStore, clock: Callable[[], str] = now_iso):
        self.store = store
        self.clock = clock

    def emit(self, type: str, message: str, order_id: Optional[int] = None) -> Notification:
        record = {
            "type": type,
            "message": message,
            "order_id": order_id,
            "read": False,
            "created_at": self.clock(),
        }
        new_id = self.store.insert("notifications", record)
        logger.debug("notification #%s: %s", new_id, message)
        return notification_from_record({**record, "id": new_id})

    def list_unread(self, limit: int = UNREAD_LIMIT) -> Tuple[Notification, ...]:
        records = self.store.scan("notifications", predicate=unread, limit=limit)
        return tuple(map(notification_from_record, records))

    def list_all(self, limit: int = ALL_LIMIT) -> Tuple[Notification, ...]:
        records = self.store.scan("notifications", limit=limit)
        return tuple(map(notification_from_record, records))

    def mark_read(self, notification_id: int) -> Notification:
        """Повторная отметка не ошибка"""
        try:
            record = self.store.update(
                "notifications", notification_id, lambda rec: {**rec, "read": True}
            )
        except NotFoundError:
            raise NotFoundError(f"notification #{notification_id} not found") from None
        return notification_from_record(record)

    def mark_all_read(self) -> int:
        return self.store.update_where("notifications", {"read": False}, {"read": True})
