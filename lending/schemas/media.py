from pydantic import BaseModel, Field
from typing import Optional

class MediaCreate(BaseModel):
    identifier: str = Field(..., min_length=1, max_length=100)
    media_type: str = Field(..., min_length=1, max_length=50)
    title: str = Field(..., min_length=1, max_length=255)
    creator: str = Field(..., min_length=1, max_length=255)
    genre: Optional[str] = None
    track_count: Optional[int] = Field(None, gt=0)

class MediaResponse(BaseModel):
    id: str
    type: str
    title: str
    creator: str
    available: bool
    loanPeriodDays: int
    genre: Optional[str] = None
    trackCount: Optional[int] = None
    
    class Config:
        from_attributes = True
