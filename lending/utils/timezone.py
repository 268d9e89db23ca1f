from datetime import date, datetime
import pytz
from lending.config import settings

# Library-local timezone (GMT+8 by default)
LIBRARY_TZ = pytz.timezone(settings.timezone)

def now_local() -> datetime:
    """Get current datetime in the library timezone."""
    return datetime.now(LIBRARY_TZ)

def today() -> date:
    """Get the current calendar date in the library timezone."""
    return now_local().date()
