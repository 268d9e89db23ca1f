import logging
from sqlalchemy.orm import Session
from lending.models.media import BOOK, CD
from lending.services.catalog import MediaCatalog
from lending.services.fines import FineLedger
from lending.services.fine_policy import fine_registry
from lending.services.patrons import PatronService

logger = logging.getLogger(__name__)


def seed_demo_data(db: Session) -> None:
    """Load sample media and patrons. Only the start-up hook and tests call this."""
    catalog = MediaCatalog(db)
    patrons = PatronService(db, FineLedger(db, fine_registry))

    catalog.add_item("9780132350884", BOOK, "Clean Code", "Robert C. Martin")
    catalog.add_item("9780441172719", BOOK, "Dune", "Frank Herbert")
    catalog.add_item("9780590353427", BOOK, "Harry Potter and the Sorcerer's Stone", "J.K. Rowling")
    catalog.add_item("CD001", CD, "Abbey Road", "The Beatles", genre="Rock", track_count=17)
    catalog.add_item("CD002", CD, "Kind of Blue", "Miles Davis", genre="Jazz", track_count=5)

    patrons.register("Alice Reader", "alice@example.com")
    patrons.register("Emma Johnson", "emma@example.com")
    patrons.register("Sarah Davis", "sarah@example.com")

    logger.info("Seeded demo media and patrons")
