"""Runtime configuration read from the environment (and an optional .env file)."""
import logging
import os
from dataclasses import dataclass
from decimal import Decimal

from dotenv import load_dotenv

load_dotenv()

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    database_url: str = "sqlite:///./budget.db"
    alert_threshold: Decimal = Decimal("80")
    realert_after_read: bool = False
    display_currency: str = "MGA"
    log_level: str = "INFO"
    db_connect_retries: int = 10
    db_connect_delay: float = 2.0


def load_settings() -> Settings:
    """Build a Settings object from environment variables."""
    return Settings(
        database_url=os.getenv("DATABASE_URL", Settings.database_url),
        alert_threshold=Decimal(os.getenv("ALERT_THRESHOLD", "80")),
        realert_after_read=_env_bool("ALERT_REALERT_AFTER_READ", False),
        display_currency=os.getenv("DISPLAY_CURRENCY", "MGA"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        db_connect_retries=int(os.getenv("DB_CONNECT_RETRIES", "10")),
        db_connect_delay=float(os.getenv("DB_CONNECT_DELAY", "2")),
    )


settings = load_settings()


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(level=level or settings.log_level, format=LOG_FORMAT)
