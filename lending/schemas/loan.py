from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import date
from .fine import FineResponse

class BorrowRequest(BaseModel):
    patron_id: str = Field(..., min_length=1)
    media_id: str = Field(..., min_length=1)
    media_type: str = Field(..., min_length=1)
    today: Optional[date] = None  # Defaults to the library's current date

class ReturnRequest(BaseModel):
    today: Optional[date] = None

class LoanResponse(BaseModel):
    id: str
    patronId: str
    mediaId: str
    mediaType: str
    borrowDate: date
    dueDate: date
    returnDate: Optional[date] = None
    status: str
    overdue: bool
    
    class Config:
        from_attributes = True

class ReturnResponse(BaseModel):
    loan: LoanResponse
    overdueDays: int = 0
    fine: Optional[FineResponse] = None
    fineError: Optional[str] = None

class OverdueItemResponse(BaseModel):
    loanId: str
    mediaId: str
    mediaType: str
    overdueDays: int
    fine: float

class OverdueSummaryResponse(BaseModel):
    patronId: str
    reportDate: date
    items: List[OverdueItemResponse] = []
    totalFine: float
