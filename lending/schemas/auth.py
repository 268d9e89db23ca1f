from pydantic import BaseModel, Field

class AdminLogin(BaseModel):
    username: str = Field(..., min_length=1, max_length=100)
    password: str

class AdminResponse(BaseModel):
    id: str
    username: str
    
    class Config:
        from_attributes = True

class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    admin: AdminResponse
