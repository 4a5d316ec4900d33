import logging
from typing import Dict, Optional

from sqlalchemy import (
    Boolean,
    Column,
    Float,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    and_,
    create_engine,
    select,
)
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from .config import Config
from .errors import LaundryError, NotFoundError, StoreError
from .ftypes import Maybe
from .store import EntityStore, MemoryStore, Mutator, Record, order_and_limit

logger = logging.getLogger(__name__)

metadata = MetaData()

customers = Table(
    "customers",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", Text, nullable=False),
    Column("phone", Text, default=""),
    Column("note", Text, default=""),
    Column("created_at", String(32), nullable=False),
)

orders = Table(
    "orders",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("customer_id", Integer, ForeignKey("customers.id"), nullable=False),
    Column("weight", Float, default=0),
    Column("price_per_kg", Float, default=0),
    Column("total", Float, default=0),
    Column("status", String(16), default="received"),
    Column("created_at", String(32), nullable=False),
    Column("due_date", String(32), nullable=True),
    Column("note", Text, default=""),
)

notifications = Table(
    "notifications",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("type", String(32), nullable=False),
    Column("message", Text, nullable=False),
    Column("order_id", Integer, ForeignKey("orders.id"), nullable=True),
    Column("read", Boolean, default=False, nullable=False),
    Column("created_at", String(32), nullable=False),
)

settings_table = Table(
    "settings",
    metadata,
    Column("key", String(64), primary_key=True),
    Column("value", Text),
)

TABLES = {
    "customers": customers,
    "orders": orders,
    "notifications": notifications,
}


def _is_memory_sqlite(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:")


class SqlStore(EntityStore):
    """Реляционное хранилище на SQLAlchemy Core (по умолчанию SQLite)"""

    def __init__(self, url: str = "sqlite:///laundry.db", engine=None):
        if engine is None:
            kwargs = {}
            if url.startswith("sqlite"):
                kwargs["connect_args"] = {"check_same_thread": False}
            if _is_memory_sqlite(url):
                # одно соединение на все потоки, иначе у каждого своя пустая БД
                kwargs["poolclass"] = StaticPool
            engine = create_engine(url, **kwargs)
        self.engine = engine
        try:
            metadata.create_all(self.engine)
        except SQLAlchemyError as exc:
            raise StoreError(f"cannot initialise database: {exc}") from exc

    def _table(self, entity: str) -> Table:
        self.check_entity(entity)
        return TABLES[entity]

    def insert(self, entity: str, record: Record) -> int:
        table = self._table(entity)
        values = {k: v for k, v in record.items() if k != "id" and k in table.c}
        try:
            with self.engine.begin() as conn:
                result = conn.execute(table.insert().values(**values))
                record_id = result.inserted_primary_key[0]
        except SQLAlchemyError as exc:
            raise StoreError(f"insert into {entity} failed: {exc}") from exc
        logger.debug("insert %s #%s", entity, record_id)
        return record_id

    def get(self, entity: str, record_id: int) -> Maybe[Record]:
        table = self._table(entity)
        try:
            with self.engine.connect() as conn:
                row = conn.execute(select(table).where(table.c.id == record_id)).first()
        except SQLAlchemyError as exc:
            raise StoreError(f"read from {entity} failed: {exc}") from exc
        return Maybe.of(dict(row._mapping) if row is not None else None)

    def scan(self, entity, predicate=None, order="desc", limit=None):
        table = self._table(entity)
        try:
            with self.engine.connect() as conn:
                rows = [dict(r._mapping) for r in conn.execute(select(table))]
        except SQLAlchemyError as exc:
            raise StoreError(f"scan of {entity} failed: {exc}") from exc
        matching = filter(predicate, rows) if predicate else rows
        return order_and_limit(matching, order, limit)

    def update(self, entity: str, record_id: int, mutator: Mutator) -> Record:
        table = self._table(entity)
        try:
            with self.engine.begin() as conn:
                row = conn.execute(select(table).where(table.c.id == record_id)).first()
                if row is None:
                    raise NotFoundError(f"{entity} #{record_id} not found")
                updated = mutator(dict(row._mapping))
                values = {k: v for k, v in updated.items() if k != "id" and k in table.c}
                conn.execute(table.update().where(table.c.id == record_id).values(**values))
        except LaundryError:
            raise
        except SQLAlchemyError as exc:
            raise StoreError(f"update of {entity} #{record_id} failed: {exc}") from exc
        logger.debug("update %s #%s", entity, record_id)
        return {**updated, "id": record_id}

    def update_where(self, entity: str, where: Dict, values: Dict) -> int:
        table = self._table(entity)
        condition = and_(*(table.c[k] == v for k, v in where.items()))
        try:
            with self.engine.begin() as conn:
                result = conn.execute(table.update().where(condition).values(**values))
        except SQLAlchemyError as exc:
            raise StoreError(f"update of {entity} failed: {exc}") from exc
        logger.debug("update %s where %s: %s rows", entity, where, result.rowcount)
        return result.rowcount

    def get_setting(self, key: str) -> Maybe[str]:
        try:
            with self.engine.connect() as conn:
                row = conn.execute(
                    select(settings_table.c.value).where(settings_table.c.key == key)
                ).first()
        except SQLAlchemyError as exc:
            raise StoreError(f"read of setting {key} failed: {exc}") from exc
        return Maybe.of(row[0] if row is not None else None)

    def set_setting(self, key: str, value: str) -> None:
        try:
            with self.engine.begin() as conn:
                exists = conn.execute(
                    select(settings_table.c.key).where(settings_table.c.key == key)
                ).first()
                if exists is None:
                    conn.execute(settings_table.insert().values(key=key, value=str(value)))
                else:
                    conn.execute(
                        settings_table.update()
                        .where(settings_table.c.key == key)
                        .values(value=str(value))
                    )
        except SQLAlchemyError as exc:
            raise StoreError(f"write of setting {key} failed: {exc}") from exc

    def settings(self) -> Dict[str, str]:
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(select(settings_table.c.key, settings_table.c.value))
                return {key: value for key, value in rows}
        except SQLAlchemyError as exc:
            raise StoreError(f"read of settings failed: {exc}") from exc


def build_store(config: Optional[Config] = None) -> EntityStore:
    """Выбирает хранилище по конфигурации"""
    config = config or Config.from_env()
    if config.store == "memory":
        return MemoryStore()
    return SqlStore(config.database_url)
