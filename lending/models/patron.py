from sqlalchemy import Column, String, DateTime, Boolean, Table, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from lending.database import Base

# Loans a patron currently holds; rows are removed on return, the loan itself stays
patron_held_loan = Table(
    "patron_held_loan",
    Base.metadata,
    Column("patron_id", String(20), ForeignKey("patron.patron_id", ondelete="CASCADE"), primary_key=True),
    Column("loan_id", String(20), ForeignKey("loan.loan_id", ondelete="CASCADE"), primary_key=True),
)

class Patron(Base):
    __tablename__ = "patron"
    
    patron_id = Column(String(20), primary_key=True)
    name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    phone_number = Column(String(20), nullable=True)
    active = Column(Boolean, default=True, nullable=False)
    can_borrow = Column(Boolean, default=True, nullable=False)  # Cached: no unpaid fines
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    
    # Relationships
    loans = relationship("Loan", back_populates="patron", order_by="Loan.loan_id")
    held_loans = relationship("Loan", secondary=patron_held_loan, order_by="Loan.loan_id")
    fines = relationship("Fine", back_populates="patron", order_by="Fine.fine_id")
    
    @property
    def held_loan_ids(self):
        return [loan.loan_id for loan in self.held_loans]
    
    def to_dict(self):
        return {
            "id": self.patron_id,
            "name": self.name,
            "email": self.email,
            "phoneNumber": self.phone_number,
            "active": self.active,
            "canBorrow": self.can_borrow,
            "heldLoans": self.held_loan_ids,
        }
