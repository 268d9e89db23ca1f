from pydantic import BaseModel, EmailStr, Field
from typing import List, Optional

class PatronCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    phone_number: Optional[str] = Field(None, max_length=20)

class PatronResponse(BaseModel):
    id: str
    name: str
    email: str
    phoneNumber: Optional[str] = None
    active: bool
    canBorrow: bool
    heldLoans: List[str] = []
    
    class Config:
        from_attributes = True

class ReactivateRequest(BaseModel):
    check_fines: bool = True

class UnregisterCheckResponse(BaseModel):
    allowed: bool
    message: str
    heldLoans: int = 0
    unpaidTotal: float = 0.0
