from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from datetime import timedelta
from lending.database import get_db
from lending.config import settings
from lending.models.admin import Admin
from lending.schemas.auth import AdminLogin, AdminResponse, Token
from lending.services.auth import (
    authenticate_admin,
    create_access_token,
    get_current_admin
)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])

@router.post("/login", response_model=Token)
async def login(login_data: AdminLogin, db: Session = Depends(get_db)):
    """Admin login, returns an access token."""
    admin = authenticate_admin(db, login_data.username, login_data.password)
    if not admin:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password"
        )
    
    access_token_expires = timedelta(minutes=settings.jwt_access_token_expire_minutes)
    access_token = create_access_token(
        data={"sub": admin.username}, expires_delta=access_token_expires
    )
    
    return Token(access_token=access_token, token_type="bearer", admin=AdminResponse(**admin.to_dict()))

@router.get("/me", response_model=AdminResponse)
async def get_current_admin_info(current_admin: Admin = Depends(get_current_admin)):
    """Get current admin information."""
    return AdminResponse(**current_admin.to_dict())
