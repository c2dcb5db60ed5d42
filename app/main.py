import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.api.v1.router import api_router
from app.services.document_number import DocumentNumberError
from app.services.indent_allocation import IndentAllocationError

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("Starting %s v%s", settings.APP_NAME, settings.APP_VERSION)
    yield
    logger.info("Shutting down %s", settings.APP_NAME)


API_DESCRIPTION = """
## Order Pricing Service

Pricing and allocation engine behind the purchase order and work order forms.

### Features

- **Line pricing**: discount, taxable value, CGST/SGST/IGST, line total
- **Document totals**: running totals, additional charges, amount in words
- **Indent allocation**: FIFO merge of approved indents into order lines
- **Submit support**: payload normalisation, limit-error mapping, budget check
- **Approvals**: two-level approval workflow with suspend/unsuspend
- **Numbering**: financial-year order numbers per site

### Rounding

Every money figure is rounded half-up to 2 decimal places at each step.

### Error Codes

| Code | Description |
|------|-------------|
| 400 | Bad Request - Action not allowed or invalid input |
| 422 | Unprocessable Entity - Request body failed validation |
| 500 | Internal Server Error |
"""

# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description=API_DESCRIPTION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API router
app.include_router(api_router)


def _error_response(request: Request, exc: Exception, status_code: int) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": str(exc),
            "type": type(exc).__name__,
            "path": str(request.url.path),
            "method": request.method,
        },
    )


@app.exception_handler(IndentAllocationError)
async def indent_allocation_error_handler(request: Request, exc: IndentAllocationError):
    return _error_response(request, exc, 400)


@app.exception_handler(DocumentNumberError)
async def document_number_error_handler(request: Request, exc: DocumentNumberError):
    return _error_response(request, exc, 400)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Unhandled errors: log with traceback, return the error envelope."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error_response(request, exc, 500)


# Health check endpoint
@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint."""
    from datetime import datetime, timezone

    return {
        "status": "healthy",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint."""
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "redoc": "/redoc",
    }
