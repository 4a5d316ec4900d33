import sys
import os

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
from laundry.config import Config
from laundry.service import LaundryApp
from laundry.store import MemoryStore


def test_defaults():
    config = Config.from_env({})
    assert config.store == "sql"
    assert config.database_url == "sqlite:///laundry.db"
    assert config.default_price_per_kg == "12000"
    assert config.poll_seconds == 15
    assert config.port == 3000


def test_environment_overrides():
    config = Config.from_env(
        {
            "LAUNDRY_STORE": "MEMORY",
            "LAUNDRY_PRICE_PER_KG": "9000",
            "LAUNDRY_LOG_LEVEL": "debug",
            "PORT": "8080",
        }
    )
    assert config.store == "memory"
    assert config.default_price_per_kg == "9000"
    assert config.log_level == "DEBUG"
    assert config.port == 8080


def test_default_price_seeded_into_settings():
    laundry = LaundryApp(MemoryStore(), Config(default_price_per_kg="9000"))
    assert laundry.settings.all() == {"price_per_kg": "9000"}
    assert laundry.settings.price_per_kg() == 9000
