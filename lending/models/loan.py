from datetime import date
from sqlalchemy import Column, String, Date, DateTime, Boolean, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from lending.database import Base

ACTIVE = "active"
RETURNED = "returned"

class Loan(Base):
    __tablename__ = "loan"
    
    loan_id = Column(String(20), primary_key=True)
    patron_id = Column(String(20), ForeignKey("patron.patron_id", ondelete="CASCADE"), nullable=False, index=True)
    media_identifier = Column(String(100), nullable=False, index=True)
    media_type = Column(String(50), nullable=False)
    borrow_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=False, index=True)
    return_date = Column(Date, nullable=True)
    overdue = Column(Boolean, default=False, nullable=False)  # Recomputed by check_overdue()
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    
    # Relationships
    patron = relationship("Patron", back_populates="loans")
    fines = relationship("Fine", back_populates="loan", order_by="Fine.fine_id")
    
    __table_args__ = (
        CheckConstraint("return_date IS NULL OR return_date >= borrow_date", name="chk_loan_return_date"),
    )
    
    @property
    def status(self) -> str:
        return ACTIVE if self.return_date is None else RETURNED
    
    @property
    def is_active(self) -> bool:
        return self.return_date is None
    
    def is_overdue_on(self, today: date) -> bool:
        """A loan due today is not overdue yet."""
        return self.return_date is None and today > self.due_date
    
    def check_overdue(self, today: date) -> bool:
        self.overdue = self.is_overdue_on(today)
        return self.overdue
    
    def overdue_days(self, today: date) -> int:
        return max(0, (today - self.due_date).days)
    
    def to_dict(self):
        return {
            "id": self.loan_id,
            "patronId": self.patron_id,
            "mediaId": self.media_identifier,
            "mediaType": self.media_type,
            "borrowDate": self.borrow_date.isoformat() if self.borrow_date else None,
            "dueDate": self.due_date.isoformat() if self.due_date else None,
            "returnDate": self.return_date.isoformat() if self.return_date else None,
            "status": self.status,
            "overdue": self.overdue,
        }
