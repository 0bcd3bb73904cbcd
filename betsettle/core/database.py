"""
Database engine and session management.
"""
from typing import Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session

_engine: Optional[Engine] = None
_SessionLocal: Optional[sessionmaker] = None


def get_engine() -> Engine:
    """Get or create the database engine from settings.DATABASE_URL."""
    global _engine, _SessionLocal

    if _engine is None:
        from betsettle.core.config import settings

        connect_args = {}
        if settings.DATABASE_URL.startswith("sqlite"):
            # FastAPI serves sync endpoints from a threadpool
            connect_args["check_same_thread"] = False

        _engine = create_engine(
            settings.DATABASE_URL,
            pool_pre_ping=True,  # Verify connections before using
            echo=settings.SQL_ECHO,
            connect_args=connect_args,
        )
        _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_engine)

    return _engine


def get_session_factory() -> sessionmaker:
    """Session factory bound to the application engine."""
    get_engine()
    return _SessionLocal


def get_db() -> Generator[Session, None, None]:
    """
    Dependency that provides a database session.

    Usage in FastAPI:
    ```python
    @router.get("/endpoint")
    def endpoint(db: Session = Depends(get_db)):
        ...
    ```
    """
    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """Create tables that don't exist yet."""
    from betsettle.models.models import Base
    Base.metadata.create_all(bind=get_engine(), checkfirst=True)
