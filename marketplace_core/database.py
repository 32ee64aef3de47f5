"""Engine and session helpers."""

from typing import Callable, Generator

from fastapi import HTTPException, Request, status
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker


def create_session_factory(database_url: str) -> Callable[[], Session]:
    """Create a session factory bound to a new engine."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    engine = create_engine(database_url, pool_pre_ping=True, connect_args=connect_args)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db_session(request: Request) -> Generator[Session, None, None]:
    """Request-scoped session from the factory stored on the application."""
    factory = getattr(request.app.state, "session_factory", None)
    if factory is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Database session not available",
        )
    db = factory()
    try:
        yield db
    finally:
        db.close()
