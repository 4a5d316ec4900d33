import copy
import logging
import threading
from typing import Callable, Dict, Optional, Tuple

from .errors import NotFoundError, StoreError
from .ftypes import Maybe

logger = logging.getLogger(__name__)

ENTITIES: Tuple[str, ...] = ("customers", "orders", "notifications")

Record = Dict
Predicate = Callable[[Record], bool]
Mutator = Callable[[Record], Record]


def creation_key(record: Record):
    """Ключ сортировки: время создания, затем id"""
    return (record.get("created_at") or "", record.get("id") or 0)


def order_and_limit(records, order: str, limit: Optional[int]) -> Tuple[Record, ...]:
    if order not in ("asc", "desc"):
        raise StoreError(f"unknown scan order: {order}")
    ranked = sorted(records, key=creation_key, reverse=(order == "desc"))
    return tuple(ranked[:limit] if limit is not None else ranked)


class EntityStore:
    """
    Контракт хранилища сущностей.
    Записи — обычные dict; id назначает хранилище.
    """

    def insert(self, entity: str, record: Record) -> int:
        raise NotImplementedError

    def get(self, entity: str, record_id: int) -> Maybe[Record]:
        raise NotImplementedError

    def scan(
        self,
        entity: str,
        predicate: Optional[Predicate] = None,
        order: str = "desc",
        limit: Optional[int] = None,
    ) -> Tuple[Record, ...]:
        raise NotImplementedError

    def update(self, entity: str, record_id: int, mutator: Mutator) -> Record:
        raise NotImplementedError

    def update_where(self, entity: str, where: Dict, values: Dict) -> int:
        """Одной операцией меняет все записи, поля которых равны where; возвращает их число"""
        raise NotImplementedError

    def get_setting(self, key: str) -> Maybe[str]:
        raise NotImplementedError

    def set_setting(self, key: str, value: str) -> None:
        raise NotImplementedError

    def settings(self) -> Dict[str, str]:
        raise NotImplementedError

    def seed_settings(self, defaults: Dict[str, str]) -> None:
        """Записывает значения по умолчанию, только если ключа ещё нет"""
        for key, value in defaults.items():
            if self.get_setting(key).is_none():
                self.set_setting(key, value)

    @staticmethod
    def check_entity(entity: str) -> None:
        if entity not in ENTITIES:
            raise StoreError(f"unknown entity type: {entity}")


class MemoryStore(EntityStore):
    """
    Хранилище в памяти процесса.
    В клиентском варианте живёт в st.session_state, т.е. своё у каждой вкладки браузера.
    """

    def __init__(self):
        self._tables: Dict[str, Dict[int, Record]] = {name: {} for name in ENTITIES}
        self._next_ids: Dict[str, int] = {name: 1 for name in ENTITIES}
        self._settings: Dict[str, str] = {}
        self._lock = threading.RLock()

    def insert(self, entity: str, record: Record) -> int:
        self.check_entity(entity)
        with self._lock:
            record_id = self._next_ids[entity]
            self._next_ids[entity] += 1
            self._tables[entity][record_id] = {**copy.deepcopy(record), "id": record_id}
        logger.debug("insert %s #%s", entity, record_id)
        return record_id

    def get(self, entity: str, record_id: int) -> Maybe[Record]:
        self.check_entity(entity)
        with self._lock:
            found = self._tables[entity].get(record_id)
            return Maybe.of(copy.deepcopy(found) if found is not None else None)

    def scan(self, entity, predicate=None, order="desc", limit=None):
        self.check_entity(entity)
        with self._lock:
            records = tuple(copy.deepcopy(r) for r in self._tables[entity].values())
        matching = filter(predicate, records) if predicate else records
        return order_and_limit(matching, order, limit)

    def update(self, entity: str, record_id: int, mutator: Mutator) -> Record:
        self.check_entity(entity)
        with self._lock:
            current = self._tables[entity].get(record_id)
            if current is None:
                raise NotFoundError(f"{entity} #{record_id} not found")
            updated = {**mutator(copy.deepcopy(current)), "id": record_id}
            self._tables[entity][record_id] = updated
            logger.debug("update %s #%s", entity, record_id)
            return copy.deepcopy(updated)

    def update_where(self, entity: str, where: Dict, values: Dict) -> int:
        self.check_entity(entity)
        with self._lock:
            matching = [
                record
                for record in self._tables[entity].values()
                if all(record.get(k) == v for k, v in where.items())
            ]
            for record in matching:
                record.update(copy.deepcopy(values))
        logger.debug("update %s where %s: %s rows", entity, where, len(matching))
        return len(matching)

    def get_setting(self, key: str) -> Maybe[str]:
        with self._lock:
            return Maybe.of(self._settings.get(key))

    def set_setting(self, key: str, value: str) -> None:
        with self._lock:
            self._settings[key] = str(value)

    def settings(self) -> Dict[str, str]:
        with self._lock:
            return dict(self._settings)
