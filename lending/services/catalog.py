import logging
from typing import List, Optional
from sqlalchemy import or_
from sqlalchemy.orm import Session
from lending.config import settings
from lending.errors import InvalidIdentifier, ValidationError
from lending.models.media import MediaItem, BOOK, CD

logger = logging.getLogger(__name__)


def loan_period_days(media_type: str) -> int:
    """Loan period for a media type; unknown types get the default period."""
    periods = {
        BOOK: settings.book_loan_days,
        CD: settings.cd_loan_days,
    }
    return periods.get((media_type or "").upper(), settings.default_loan_days)


class MediaCatalog:
    """Catalog lookups used by the lending engine.

    The loan manager only ever changes the availability flag.
    """

    def __init__(self, db: Session):
        self.db = db

    def find_item(self, identifier: str, media_type: Optional[str] = None) -> Optional[MediaItem]:
        query = self.db.query(MediaItem).filter(MediaItem.identifier == identifier)
        if media_type:
            query = query.filter(MediaItem.media_type == media_type.upper())
        return query.first()

    def set_available(self, identifier: str, available: bool, media_type: Optional[str] = None) -> bool:
        item = self.find_item(identifier, media_type)
        if item is None:
            logger.warning(f"Cannot update availability, media {identifier} not found")
            return False
        item.available = available
        return True

    def loan_period_days(self, media_type: str) -> int:
        return loan_period_days(media_type)

    def add_item(
        self,
        identifier: str,
        media_type: str,
        title: str,
        creator: str,
        genre: Optional[str] = None,
        track_count: Optional[int] = None,
    ) -> MediaItem:
        if not identifier or not identifier.strip():
            raise InvalidIdentifier("Media identifier cannot be empty")
        media_type = media_type.upper()
        if self.find_item(identifier, media_type) is not None:
            raise ValidationError(f"{media_type} with identifier {identifier} already exists")
        item = MediaItem(
            identifier=identifier.strip(),
            media_type=media_type,
            title=title,
            creator=creator,
            available=True,
            loan_period_days=loan_period_days(media_type),
            genre=genre,
            track_count=track_count,
        )
        self.db.add(item)
        self.db.commit()
        self.db.refresh(item)
        logger.info(f"Added {media_type} {identifier}: {title}")
        return item

    def list_items(self, media_type: Optional[str] = None) -> List[MediaItem]:
        query = self.db.query(MediaItem)
        if media_type:
            query = query.filter(MediaItem.media_type == media_type.upper())
        return query.order_by(MediaItem.media_type, MediaItem.title).all()

    def search(self, text: str) -> List[MediaItem]:
        term = f"%{text.strip()}%"
        return self.db.query(MediaItem).filter(
            or_(
                MediaItem.title.ilike(term),
                MediaItem.creator.ilike(term),
                MediaItem.identifier.ilike(term),
            )
        ).order_by(MediaItem.title).all()
