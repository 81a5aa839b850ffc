from __future__ import annotations

from typing import Iterator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from shiptrack.infrastructure.database import Base, engine
from shiptrack.infrastructure.models.models import ShipmentEventModel


@pytest.fixture()
def db_session() -> Iterator[Session]:
    """
    A private in-memory database per test, independent from the app's engine.
    """
    test_engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    session = sessionmaker(bind=test_engine)()
    try:
        yield session
    finally:
        session.close()
        test_engine.dispose()


@pytest.fixture()
def clean_app_store() -> Iterator[None]:
    """
    Ensure tests don't leak events into each other via the app's shared in-memory database.
    """
    Base.metadata.create_all(bind=engine)
    with engine.begin() as conn:
        conn.execute(ShipmentEventModel.__table__.delete())
    yield
