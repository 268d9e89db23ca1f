from sqlalchemy import Column, String, DateTime, Integer, Boolean, UniqueConstraint
from sqlalchemy.sql import func
from lending.database import Base

BOOK = "BOOK"
CD = "CD"

class MediaItem(Base):
    __tablename__ = "media_item"
    
    media_id = Column(Integer, primary_key=True, autoincrement=True)
    identifier = Column(String(100), nullable=False, index=True)  # ISBN for books, catalog number for CDs
    media_type = Column(String(50), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    creator = Column(String(255), nullable=False)  # Author or artist
    available = Column(Boolean, default=True, nullable=False)
    loan_period_days = Column(Integer, nullable=False)
    genre = Column(String(100), nullable=True)
    track_count = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    
    __table_args__ = (
        UniqueConstraint("identifier", "media_type", name="uq_media_identifier_type"),
    )
    
    def to_dict(self):
        return {
            "id": self.identifier,
            "type": self.media_type,
            "title": self.title,
            "creator": self.creator,
            "available": self.available,
            "loanPeriodDays": self.loan_period_days,
            "genre": self.genre,
            "trackCount": self.track_count,
        }
