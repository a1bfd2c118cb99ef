import logging
from os import getenv
from typing import Optional

from pydantic import BaseModel
from sqlalchemy.engine import make_url
from sqlmodel import SQLModel, create_engine, Session, select

from .errors import BackendError

log = logging.getLogger(__name__)

# Hosted database URL plus its access key. Either one missing (or left at a
# template value) puts the app in demo mode.
DATABASE_URL = getenv("LOOOM_DB_URL", "")
DATABASE_KEY = getenv("LOOOM_DB_KEY", "")

PLACEHOLDERS = {"", "your-database-url", "your-anon-key", "changeme"}

_engine = None


class ConnectionResult(BaseModel):
    success: bool
    error: Optional[str] = None


def configure(url: Optional[str], key: Optional[str]):
    """Point the adapter at another backend, or at none for demo mode."""
    global DATABASE_URL, DATABASE_KEY, _engine
    DATABASE_URL, DATABASE_KEY = (url or "").strip(), (key or "").strip()
    if _engine is not None:
        _engine.dispose()
    _engine = None


def is_backend_configured() -> bool:
    return DATABASE_URL not in PLACEHOLDERS and DATABASE_KEY not in PLACEHOLDERS


def get_engine():
    global _engine
    if not is_backend_configured():
        raise BackendError("Backend not configured")
    if _engine is None:
        url = make_url(DATABASE_URL)
        if url.host:
            url = url.set(password=DATABASE_KEY)
        connect_args = {"check_same_thread": False} if url.get_backend_name() == "sqlite" else {}
        _engine = create_engine(url, echo=False, connect_args=connect_args)
    return _engine


def init_db():
    from . import models  # noqa
    SQLModel.metadata.create_all(get_engine())


def test_backend_connection() -> ConnectionResult:
    if not is_backend_configured():
        return ConnectionResult(success=False, error="Backend not configured")
    from .models import ProductRow

    log.info("Testing backend connection")
    try:
        with Session(get_engine()) as session:
            session.exec(select(ProductRow.id).limit(1)).first()
    except Exception as e:
        log.error("Backend connection error: %s", e)
        return ConnectionResult(success=False, error=str(e) or e.__class__.__name__)
    log.info("Backend connection successful")
    return ConnectionResult(success=True)


def initialize_backend() -> bool:
    if not is_backend_configured():
        log.info("Backend not configured, running in demo mode")
        log.info("Set LOOOM_DB_URL and LOOOM_DB_KEY and restart to persist data")
        return False

    log.info("Initializing backend connection")
    try:
        init_db()
    except Exception as e:
        log.error("Could not prepare backend tables: %s", e)
        log.info("Falling back to demo mode")
        return False

    result = test_backend_connection()
    if not result.success:
        log.error("Backend connection failed: %s", result.error)
        log.info("Falling back to demo mode")
        return False
    log.info("Backend connected, products will persist in the database")
    return True
