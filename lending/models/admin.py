from sqlalchemy import Column, String, DateTime, Integer
from sqlalchemy.sql import func
from lending.database import Base

class Admin(Base):
    __tablename__ = "admin"
    
    admin_id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(100), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    
    def to_dict(self):
        return {
            "id": str(self.admin_id),
            "username": self.username,
        }
