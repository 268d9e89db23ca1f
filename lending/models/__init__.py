from .admin import Admin
from .media import MediaItem
from .patron import Patron, patron_held_loan
from .loan import Loan
from .fine import Fine

__all__ = [
    "Admin",
    "MediaItem",
    "Patron",
    "patron_held_loan",
    "Loan",
    "Fine",
]
