import logging
from datetime import timedelta
from typing import Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from lending.config import settings
from lending.models.admin import Admin
from lending.database import get_db
from lending.utils.timezone import now_local

logger = logging.getLogger(__name__)

# HTTP Bearer token - auto_error=False so we can handle errors ourselves
security = HTTPBearer(auto_error=False)

# Password hashing context - using bcrypt with automatic salt generation
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against a hashed password."""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except Exception as e:
        # If hash is not a valid bcrypt hash, return False
        logger.error(f"Password verification error: {e}. Hash format may be invalid.")
        return False

def get_password_hash(password: str) -> str:
    """Hash a password using bcrypt."""
    return pwd_context.hash(password)

def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    """Create a JWT access token."""
    to_encode = data.copy()
    if expires_delta:
        expire = now_local() + expires_delta
    else:
        expire = now_local() + timedelta(minutes=settings.jwt_access_token_expire_minutes)
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)
    return encoded_jwt

def ensure_admin(db: Session) -> Admin:
    """Create the configured admin account if it does not exist yet."""
    admin = db.query(Admin).filter(Admin.username == settings.admin_username).first()
    if admin is None:
        admin = Admin(
            username=settings.admin_username,
            password_hash=get_password_hash(settings.admin_password),
        )
        db.add(admin)
        db.commit()
        db.refresh(admin)
        logger.info(f"Created admin account '{admin.username}'")
    return admin

def authenticate_admin(db: Session, username: str, password: str) -> Optional[Admin]:
    admin = db.query(Admin).filter(Admin.username == username).first()
    if not admin or not verify_password(password, admin.password_hash):
        return None
    return admin


class AuthService:
    """Auth collaborator: answers whether a token belongs to a logged-in admin."""
    
    def __init__(self, db: Session):
        self.db = db
    
    def admin_for_token(self, token: Optional[str]) -> Optional[Admin]:
        if not token:
            return None
        try:
            payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
        except JWTError as e:
            logger.warning(f"JWT validation error: {str(e)}")
            return None
        username = payload.get("sub")
        if username is None:
            return None
        return self.db.query(Admin).filter(Admin.username == username).first()
    
    def is_logged_in(self, token: Optional[str]) -> bool:
        return self.admin_for_token(token) is not None

def get_current_admin(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> Admin:
    """Get current admin from JWT token."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Admin login required. Please provide a valid Authorization header with Bearer token.",
        headers={"WWW-Authenticate": "Bearer"},
    )
    
    if credentials is None:
        if request.headers.get("Authorization"):
            logger.warning("Authorization header present but invalid format")
        else:
            logger.warning("Authorization header missing")
        raise credentials_exception
    
    admin = AuthService(db).admin_for_token(credentials.credentials)
    if admin is None:
        raise credentials_exception
    return admin
