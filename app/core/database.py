"""Database engine (bounded connection pool) and session management."""

from collections.abc import Generator
from typing import TYPE_CHECKING, Any

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker

from app.core.config import settings

if TYPE_CHECKING:
    from app.core.config import Settings


def engine_options(cfg: "Settings") -> dict[str, Any]:
    """
    Build create_engine() keyword arguments for the configured backend.

    Postgres gets a bounded QueuePool with acquire/idle limits, a connect timeout
    and a server-side statement timeout. SQLite only gets what its pools accept.
    """
    url = make_url(cfg.DATABASE_URL)
    options: dict[str, Any] = {"pool_pre_ping": True, "echo": cfg.DEBUG}

    if url.get_backend_name() == "sqlite":
        options["connect_args"] = {
            "check_same_thread": False,
            "timeout": cfg.DB_CONNECT_TIMEOUT_SEC,
        }
        # In-memory databases use a single-connection pool without size limits.
        if url.database in (None, "", ":memory:"):
            return options
    else:
        connect_args: dict[str, Any] = {"connect_timeout": cfg.DB_CONNECT_TIMEOUT_SEC}
        if cfg.DB_STATEMENT_TIMEOUT_MS:
            connect_args["options"] = f"-c statement_timeout={cfg.DB_STATEMENT_TIMEOUT_MS}"
        options["connect_args"] = connect_args

    options.update(
        pool_size=cfg.DB_POOL_SIZE,
        max_overflow=cfg.DB_MAX_OVERFLOW,
        pool_timeout=cfg.DB_POOL_TIMEOUT_SEC,
        pool_recycle=cfg.DB_POOL_RECYCLE_SEC,
    )
    return options


def build_engine(cfg: "Settings") -> Engine:
    return create_engine(cfg.DATABASE_URL, **engine_options(cfg))


engine = build_engine(settings)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Dependency that yields a DB session and closes it when done."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def check_db_connected(db: Session) -> bool:
    """Run a trivial query to verify the database is reachable."""
    try:
        db.execute(text("SELECT 1"))
        return True
    except Exception:
        return False
