import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv


LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


@dataclass(frozen=True)
class Config:
    """Настройки приложения (переменные окружения / .env)"""

    store: str = "sql"  # "sql" | "memory"
    database_url: str = "sqlite:///laundry.db"
    default_price_per_kg: str = "12000"
    log_level: str = "INFO"
    poll_seconds: int = 15
    host: str = "127.0.0.1"
    port: int = 3000

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Config":
        """
        Читает конфигурацию. Без явного environ сначала подгружается .env
        """
        if environ is None:
            load_dotenv()
            environ = os.environ

        defaults = cls()
        return cls(
            store=environ.get("LAUNDRY_STORE", defaults.store).lower(),
            database_url=environ.get("LAUNDRY_DATABASE_URL", defaults.database_url),
            default_price_per_kg=environ.get(
                "LAUNDRY_PRICE_PER_KG", defaults.default_price_per_kg
            ),
            log_level=environ.get("LAUNDRY_LOG_LEVEL", defaults.log_level).upper(),
            poll_seconds=int(environ.get("LAUNDRY_POLL_SECONDS", defaults.poll_seconds)),
            host=environ.get("HOST", defaults.host),
            port=int(environ.get("PORT", defaults.port)),
        )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)
