from datetime import date

import pytest
from sqlalchemy.orm import sessionmaker

import lending.models  # noqa: F401  registers tables on Base
from lending.database import Base, build_engine
from lending.models.media import BOOK, CD
from lending.services.desk import LendingDesk
from lending.services.fine_policy import FineStrategyRegistry
from lending.services.notifications import NotificationSubject

DAY0 = date(2024, 1, 1)


class RecordingObserver:
    def __init__(self):
        self.events = []

    def handle(self, event):
        self.events.append(event)

    def types(self):
        return [e.event_type.value for e in self.events]


@pytest.fixture
def db():
    engine = build_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def recorder():
    return RecordingObserver()


@pytest.fixture
def registry():
    return FineStrategyRegistry.default()


@pytest.fixture
def desk(db, registry, recorder):
    return LendingDesk(db, registry=registry, subject=NotificationSubject([recorder]), paid_fine_policy="new_charge")


@pytest.fixture
def library(desk):
    """A patron, two books and a CD."""
    desk.catalog.add_item("B1", BOOK, "Clean Code", "Robert C. Martin")
    desk.catalog.add_item("B2", BOOK, "Dune", "Frank Herbert")
    desk.catalog.add_item("CD1", CD, "Abbey Road", "The Beatles", genre="Rock", track_count=17)
    desk.patrons.register("Alice Reader", "alice@example.com")
    desk.patrons.register("Bob Borrower", "bob@example.com")
    return desk
