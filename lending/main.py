import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from starlette.middleware.base import BaseHTTPMiddleware
from lending.config import settings
from lending.database import engine, Base, SessionLocal
from lending.errors import (
    LendingError,
    ValidationError,
    NotFoundError,
    ConflictError,
    PolicyError,
)
from lending.routes import auth, patrons, media, loans, fines, reminders
from lending.services.auth import ensure_admin
from lending.services.seed import seed_demo_data

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to log incoming requests."""
    async def dispatch(self, request: Request, call_next):
        auth_header = request.headers.get("Authorization")
        client_ip = request.client.host if request.client else "unknown"
        logger.info(f"{request.method} {request.url.path} - IP: {client_ip} - Auth: {'Present' if auth_header else 'Missing'}")
        
        response = await call_next(request)
        return response

Base.metadata.create_all(bind=engine)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the admin account and optional demo data on start-up."""
    db = SessionLocal()
    try:
        ensure_admin(db)
        if settings.seed_demo_data:
            logger.info("Seeding demo data...")
            seed_demo_data(db)
    finally:
        db.close()
    
    yield
    
    logger.info("Lending API shutting down")


app = FastAPI(
    title="Library Lending API",
    description="Lending and billing engine for a small library: loans, overdue fines and payments",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

ERROR_STATUS = [
    (ValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (PolicyError, status.HTTP_400_BAD_REQUEST),
]

@app.exception_handler(LendingError)
async def lending_error_handler(request: Request, exc: LendingError):
    """Map engine errors to HTTP responses that keep the error code."""
    status_code = next(
        (code for error_type, code in ERROR_STATUS if isinstance(exc, error_type)),
        status.HTTP_400_BAD_REQUEST,
    )
    logger.warning(f"{request.method} {request.url.path} failed: {exc.code} - {exc.message}")
    body = {"detail": exc.message, "code": exc.code}
    decision = getattr(exc, "decision", None)
    if decision is not None and decision.reason is not None:
        body["reason"] = decision.reason.value
    return JSONResponse(status_code=status_code, content=body)

# Logging middleware (last, to log everything)
app.add_middleware(LoggingMiddleware)

# Include routers
app.include_router(auth.router)
app.include_router(patrons.router)
app.include_router(media.router)
app.include_router(loans.router)
app.include_router(fines.router)
app.include_router(reminders.router)

@app.get("/")
async def root():
    return {"message": "Library Lending API", "version": "1.0.0"}

@app.get("/api/health")
async def health_check():
    return {"status": "healthy"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "lending.main:app",
        host=settings.host,
        port=settings.port,
        reload=True
    )
