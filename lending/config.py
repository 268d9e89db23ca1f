from pydantic_settings import BaseSettings
from typing import Optional
from pathlib import Path

# Get the project directory (parent of the lending package)
PROJECT_DIR = Path(__file__).parent.parent
ENV_FILE = PROJECT_DIR / ".env"

class Settings(BaseSettings):
    # Server settings
    host: str = "0.0.0.0"
    port: int = 3000
    
    # Database settings - in-memory SQLite unless overridden
    database_url: str = "sqlite://"
    
    # Library-local timezone used when a caller does not pass a date
    timezone: str = "Asia/Kuala_Lumpur"
    
    # Loan periods in days per media type
    book_loan_days: int = 28
    cd_loan_days: int = 7
    default_loan_days: int = 28
    
    # Flat overdue fines per media type
    book_flat_fine: float = 10.00
    cd_flat_fine: float = 20.00
    
    # What to do when an overdue loan's only fine is already paid:
    # "new_charge" creates a second fine, "keep_closed" leaves the loan alone
    paid_fine_policy: str = "new_charge"
    
    # Notification observers
    console_notifications: bool = True
    fine_log_file: Optional[str] = "library_fines.log"  # Empty or None disables the file observer
    
    # SMTP settings for the email observer and overdue reminders
    smtp_host: Optional[str] = None  # Email is disabled when no host is configured
    smtp_port: int = 587
    smtp_username: Optional[str] = None
    smtp_password: Optional[str] = None  # Confidential, from .env only
    smtp_use_tls: bool = True
    email_from: str = "library@example.com"
    email_timeout_seconds: float = 10.0
    
    # Admin account and JWT settings
    admin_username: str = "admin"
    admin_password: str = "admin123"  # Override in .env
    jwt_secret_key: str = "change-me"  # Override in .env
    jwt_algorithm: str = "HS256"
    jwt_access_token_expire_minutes: int = 60
    
    # Load sample media and patrons on start-up
    seed_demo_data: bool = False
    
    class Config:
        env_file = str(ENV_FILE) if ENV_FILE.exists() else ".env"
        case_sensitive = False

settings = Settings()
