from pydantic import BaseModel, Field
from typing import Dict, Optional
from datetime import date

class ManualFineCreate(BaseModel):
    patron_id: str = Field(..., min_length=1)
    amount: float = Field(..., gt=0, allow_inf_nan=False)
    reason: str = Field(..., min_length=1, max_length=255)

class LoanFineCreate(BaseModel):
    patron_id: str = Field(..., min_length=1)
    loan_id: str = Field(..., min_length=1)
    reason: str = Field("overdue", min_length=1, max_length=255)

class PaymentRequest(BaseModel):
    amount: float = Field(..., allow_inf_nan=False)  # Sign checked by the ledger so the error carries its code
    today: Optional[date] = None

class FineResponse(BaseModel):
    id: str
    patronId: str
    loanId: Optional[str] = None
    amount: float
    paidAmount: float
    remainingBalance: float
    paid: bool
    reason: Optional[str] = None
    
    class Config:
        from_attributes = True

class PaymentResponse(BaseModel):
    fine: FineResponse
    amountApplied: float
    refund: float
    remainingBalance: float
    fullyPaid: bool
    borrowingRestored: bool
    message: str

class FineBreakdownResponse(BaseModel):
    patronId: str
    byMediaType: Dict[str, float] = {}
    countByMediaType: Dict[str, int] = {}
    manualTotal: float = 0.0
    total: float

class PolicyCreate(BaseModel):
    media_type: str = Field(..., min_length=1, max_length=50)
    flat_fine: float = Field(..., gt=0, allow_inf_nan=False)

class PolicyResponse(BaseModel):
    mediaType: str
    flatFine: float
