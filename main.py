from fastapi import FastAPI, HTTPException, Request, Depends, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
import structlog
import time
from contextlib import asynccontextmanager
from typing import List

from accounts import ClientId
from models import (
    AccountResponse,
    BatchRequest,
    BatchResponse,
    ErrorResponse,
    HealthResponse,
    TransactionRequest,
    TransactionResponse,
)
from services import TransactionService, get_transaction_service
from repositories import InMemoryAccountRepository
from errors import AccountNotFoundError, LedgerError, RecordError
from config import get_settings
from logging_config import configure_logging

settings = get_settings()
configure_logging(settings)

logger = structlog.get_logger(__name__)

# Rate limiting
limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)


def transaction_rate_limit() -> str:
    return f"{get_settings().rate_limit_per_minute}/minute"


# Application lifespan
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Starting Client Ledger API")
    yield
    # Shutdown
    logger.info("Shutting down Client Ledger API")

# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Applies deposits, withdrawals and disputes to in-memory client accounts",
    version=settings.app_version,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# One ledger per process, never persisted
app.state.service = get_transaction_service(InMemoryAccountRepository(), settings.stop_on_error)

# Add rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=settings.allowed_methods,
    allow_headers=settings.allowed_headers,
)

# Request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()

    logger.info(
        "Request started",
        method=request.method,
        url=str(request.url),
        client_ip=request.client.host if request.client else None
    )

    response = await call_next(request)

    process_time = time.time() - start_time
    logger.info(
        "Request completed",
        method=request.method,
        url=str(request.url),
        status_code=response.status_code,
        process_time=round(process_time, 4)
    )

    return response

# Dependency injection
def get_service(request: Request) -> TransactionService:
    return request.app.state.service

# Health check endpoint
@app.get(
    "/health",
    response_model=HealthResponse,
    summary="Health Check",
    description="Check API health and get ledger statistics"
)
async def health_check(service: TransactionService = Depends(get_service)):
    return HealthResponse(
        status="healthy",
        accounts_count=service.account_repo.get_accounts_count(),
        transactions_processed=service.transactions_processed
    )

# Single transaction endpoint
@app.post(
    "/transactions",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Apply Transaction",
    description="Apply one deposit, withdrawal, dispute, resolve or chargeback to a client account",
    responses={
        201: {"description": "Transaction applied"},
        422: {"description": "Invalid record, arithmetic error or insufficient funds"},
        429: {"description": "Rate limit exceeded"},
        500: {"description": "Internal server error"}
    }
)
@limiter.limit(transaction_rate_limit)
async def create_transaction(
    request: Request,
    transaction_request: TransactionRequest,
    service: TransactionService = Depends(get_service)
):
    logger.info(
        "Transaction request received",
        client=transaction_request.client,
        tx=transaction_request.tx,
        type=transaction_request.type.value
    )

    account = service.apply(transaction_request)

    return TransactionResponse(
        status="processed",
        client=transaction_request.client,
        tx=transaction_request.tx,
        account=AccountResponse.from_account(account)
    )

# Batch endpoint, skips records that fail
@app.post(
    "/transactions/batch",
    response_model=BatchResponse,
    summary="Apply Transactions",
    description="Apply records in order; failed records are reported and skipped"
)
@limiter.limit(transaction_rate_limit)
async def create_transactions(
    request: Request,
    batch: BatchRequest,
    service: TransactionService = Depends(get_service)
):
    summary = service.process_records(batch.transactions)
    return BatchResponse(applied=summary.applied, rejected=summary.rejected)

@app.get(
    "/accounts",
    response_model=List[AccountResponse],
    summary="List Accounts",
    description="Current state of every client account, ordered by client id"
)
async def list_accounts(service: TransactionService = Depends(get_service)):
    return service.report()

@app.get(
    "/accounts/{client_id}",
    response_model=AccountResponse,
    summary="Get Account",
    responses={404: {"description": "Account not found"}}
)
async def get_account(client_id: int, service: TransactionService = Depends(get_service)):
    try:
        account = service.account_report(ClientId(client_id))
    except ValueError:
        raise AccountNotFoundError(client_id) from None
    if account is None:
        raise AccountNotFoundError(client_id)
    return account

# Exception handlers
@app.exception_handler(LedgerError)
async def ledger_exception_handler(request: Request, exc: LedgerError):
    logger.warning(
        "Transaction rejected",
        error_code=exc.code,
        detail=exc.message,
        url=str(request.url)
    )
    return JSONResponse(
        status_code=422,
        content=ErrorResponse(detail=exc.message, error_code=exc.code).model_dump(mode="json")
    )

@app.exception_handler(RecordError)
async def record_exception_handler(request: Request, exc: RecordError):
    return JSONResponse(
        status_code=422,
        content=ErrorResponse(detail=str(exc), error_code="INVALID_RECORD").model_dump(mode="json")
    )

@app.exception_handler(AccountNotFoundError)
async def not_found_exception_handler(request: Request, exc: AccountNotFoundError):
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content=ErrorResponse(detail=str(exc), error_code="ACCOUNT_NOT_FOUND").model_dump(mode="json")
    )

@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            detail=str(exc.detail),
            error_code=f"HTTP_{exc.status_code}"
        ).model_dump(mode="json")
    )

@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.error(
        "Unhandled exception",
        error=str(exc),
        url=str(request.url),
        method=request.method,
        exc_info=True
    )

    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            detail="Internal server error",
            error_code="INTERNAL_ERROR"
        ).model_dump(mode="json")
    )

# Root endpoint
@app.get("/", include_in_schema=False)
async def root():
    return {"message": settings.app_name, "docs": "/docs"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower()
    )
