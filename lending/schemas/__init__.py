from .auth import AdminLogin, AdminResponse, Token
from .patron import PatronCreate, PatronResponse, ReactivateRequest, UnregisterCheckResponse
from .media import MediaCreate, MediaResponse
from .fine import (
    ManualFineCreate, LoanFineCreate, PaymentRequest,
    FineResponse, PaymentResponse, FineBreakdownResponse,
    PolicyCreate, PolicyResponse
)
from .loan import (
    BorrowRequest, ReturnRequest,
    LoanResponse, ReturnResponse,
    OverdueItemResponse, OverdueSummaryResponse
)

__all__ = [
    "AdminLogin", "AdminResponse", "Token",
    "PatronCreate", "PatronResponse", "ReactivateRequest", "UnregisterCheckResponse",
    "MediaCreate", "MediaResponse",
    "ManualFineCreate", "LoanFineCreate", "PaymentRequest",
    "FineResponse", "PaymentResponse", "FineBreakdownResponse",
    "PolicyCreate", "PolicyResponse",
    "BorrowRequest", "ReturnRequest",
    "LoanResponse", "ReturnResponse",
    "OverdueItemResponse", "OverdueSummaryResponse",
]
