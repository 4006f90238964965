"""Database engine, sessions and schema bootstrap."""
import logging
import time

from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlmodel import SQLModel, create_engine, Session, select

from models import Category
from settings import configure_logging, settings

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES = [
    ("Salaire", "income", "#4CAF50"),
    ("Autre Revenu", "income", "#8BC34A"),
    ("Nourriture", "expense", "#F44336"),
    ("Transport", "expense", "#FF9800"),
    ("Logement", "expense", "#9C27B0"),
    ("Santé", "expense", "#E91E63"),
    ("Divertissement", "expense", "#00BCD4"),
    ("Autre Dépense", "expense", "#607D8B"),
]


def make_engine(database_url: str) -> Engine:
    if database_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}
    else:
        connect_args = {}
    return create_engine(
        database_url,
        connect_args=connect_args,
        echo=False,
        pool_pre_ping=not database_url.startswith("sqlite"),
    )


engine = make_engine(settings.database_url)


def get_session():
    """Provide a database session, closed automatically afterwards."""
    with Session(engine) as session:
        yield session


def save_and_refresh(session: Session, instance):
    """Persist and refresh an instance in the current session."""
    session.add(instance)
    session.commit()
    session.refresh(instance)
    return instance


def seed_default_categories(session: Session) -> int:
    """Insert the default categories that are missing. Returns how many were added."""
    existing = {(c.name, c.type) for c in session.exec(select(Category)).all()}
    missing = [
        Category(name=name, type=type_, color=color)
        for name, type_, color in DEFAULT_CATEGORIES
        if (name, type_) not in existing
    ]
    if not missing:
        logger.debug("Default categories already present, skipping seed")
        return 0

    session.add_all(missing)
    session.commit()
    logger.info("Added %d default categories", len(missing))
    return len(missing)


def init_db(target: Engine | None = None, retries: int | None = None, delay: float | None = None) -> None:
    """
    Prepare the database:
    - Wait for the server to accept connections
    - Create tables
    - Seed default categories
    """
    configure_logging()
    target = target or engine
    retries = settings.db_connect_retries if retries is None else retries
    delay = settings.db_connect_delay if delay is None else delay
    last_exc: Exception | None = None

    for attempt in range(1, retries + 1):
        try:
            SQLModel.metadata.create_all(target)
            with Session(target) as session:
                seed_default_categories(session)
            logger.info("Database ready, tables created, categories seeded.")
            return
        except OperationalError as exc:
            last_exc = exc
            logger.warning(
                "DB not ready yet (attempt %d/%d); waiting %ss...",
                attempt, retries, delay,
            )
            time.sleep(delay)

    logger.error("Giving up connecting to the database.")
    if last_exc:
        raise last_exc
    raise RuntimeError("Database not reachable on startup.")
