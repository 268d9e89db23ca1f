from fastapi import APIRouter, Depends, HTTPException, Query, status
from typing import Optional
from datetime import date
from lending.models.admin import Admin
from lending.services.auth import get_current_admin
from lending.services.desk import LendingDesk, get_desk
from lending.services.mailer import EmailService
from lending.services.reminders import ReminderService
from lending.utils.timezone import today as library_today

router = APIRouter(prefix="/api/reminders", tags=["Reminders"])

@router.post("/overdue")
async def send_overdue_reminders(
    today: Optional[date] = Query(None),
    current_admin: Admin = Depends(get_current_admin),
    desk: LendingDesk = Depends(get_desk)
):
    """Email every patron who holds overdue items (admin only)."""
    email_service = EmailService()
    if not email_service.enabled:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Email service is not configured"
        )
    
    sent = ReminderService(desk.loans, email_service).send_overdue_reminders(today or library_today())
    return {"sent": sent, "patrons": len(sent)}
