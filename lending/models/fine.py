from decimal import Decimal
from sqlalchemy import Column, String, DateTime, Numeric, Boolean, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from lending.database import Base

class Fine(Base):
    __tablename__ = "fine"
    
    fine_id = Column(String(20), primary_key=True)
    patron_id = Column(String(20), ForeignKey("patron.patron_id", ondelete="CASCADE"), nullable=False, index=True)
    loan_id = Column(String(20), ForeignKey("loan.loan_id", ondelete="SET NULL"), nullable=True, index=True)  # None for manual fines
    amount = Column(Numeric(10, 2), nullable=False)
    paid_amount = Column(Numeric(10, 2), default=Decimal("0.00"), nullable=False)
    paid = Column(Boolean, default=False, nullable=False)
    reason = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    
    # Relationships
    patron = relationship("Patron", back_populates="fines")
    loan = relationship("Loan", back_populates="fines")
    
    __table_args__ = (
        CheckConstraint("paid_amount >= 0 AND paid_amount <= amount", name="chk_fine_paid_amount"),
    )
    
    @property
    def remaining_balance(self) -> Decimal:
        return max(Decimal(self.amount) - Decimal(self.paid_amount or 0), Decimal("0.00"))
    
    def to_dict(self):
        return {
            "id": self.fine_id,
            "patronId": self.patron_id,
            "loanId": self.loan_id,
            "amount": float(self.amount),
            "paidAmount": float(self.paid_amount or 0),
            "remainingBalance": float(self.remaining_balance),
            "paid": self.paid,
            "reason": self.reason,
        }
