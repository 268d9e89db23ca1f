import logging
import smtplib
from email.message import EmailMessage
from typing import Optional
from lending.config import settings

logger = logging.getLogger(__name__)


class EmailService:
    """Sends plain-text email over SMTP."""
    
    def __init__(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        use_tls: Optional[bool] = None,
        sender: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.host = host or settings.smtp_host
        self.port = port or settings.smtp_port
        self.username = username if username is not None else settings.smtp_username
        self.password = password if password is not None else settings.smtp_password
        self.use_tls = settings.smtp_use_tls if use_tls is None else use_tls
        self.sender = sender or settings.email_from
        self.timeout = timeout or settings.email_timeout_seconds
    
    @property
    def enabled(self) -> bool:
        return bool(self.host)
    
    def send_email(self, to: str, subject: str, body: str) -> None:
        """Send an email; raises on any SMTP failure."""
        if not self.enabled:
            raise RuntimeError("Email service is not configured (SMTP_HOST missing)")
        
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = to
        message["Subject"] = subject
        message.set_content(body)
        
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            if self.use_tls:
                smtp.starttls()
            if self.username and self.password:
                smtp.login(self.username, self.password)
            smtp.send_message(message)
        
        logger.info(f"Email sent to {to}: {subject}")
