from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class OrderStatus(str, Enum):
    RECEIVED = "received"
    PROCESSING = "processing"
    DONE = "done"
    PICKED = "picked"


class _Unset:
    """Маркер «поле не передано» (в отличие от явного None)"""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNSET"


UNSET: Any = _Unset()


@dataclass(frozen=True)
class Customer:
    id: int
    name: str
    phone: str
    note: str
    created_at: str


@dataclass(frozen=True)
class Order:
    id: int
    customer_id: int
    weight: float
    price_per_kg: float
    total: float  # всегда weight * price_per_kg
    status: OrderStatus
    created_at: str
    due_date: Optional[str] = None
    note: str = ""


@dataclass(frozen=True)
class Notification:
    id: int
    type: str
    message: str
    order_id: Optional[int]
    read: bool
    created_at: str


@dataclass(frozen=True)
class OrderPatch:
    """
    Частичное обновление заказа.
    Каждое поле либо UNSET (не трогаем), либо новое значение.
    """

    status: Any = UNSET
    weight: Any = UNSET
    price_per_kg: Any = UNSET
    note: Any = UNSET

    @staticmethod
    def from_payload(payload: Dict[str, Any]) -> "OrderPatch":
        """Строит патч только из реально присутствующих ключей"""
        known = ("status", "weight", "price_per_kg", "note")
        return OrderPatch(**{k: payload[k] for k in known if k in payload})

    def is_set(self, name: str) -> bool:
        return getattr(self, name) is not UNSET


@dataclass(frozen=True)
class Event:
    id: str
    ts: str
    name: str
    payload: Dict = field(default_factory=dict)
