from fastapi import Request
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, Session, create_engine


def create_db_engine(url: str) -> Engine:
    """Create the engine the application runs against."""
    connect_args = {}
    if url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(url, echo=False, connect_args=connect_args)


def create_db_and_tables(engine: Engine):
    """Create all database tables."""
    # Import models so every table is registered on the metadata
    from . import models  # noqa: F401

    SQLModel.metadata.create_all(engine)


def get_session(request: Request):
    """Dependency for getting database sessions."""
    with Session(request.app.state.engine) as session:
        yield session
