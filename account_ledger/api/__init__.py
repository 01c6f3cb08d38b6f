"""
Account Ledger API Application Factory
"""

import time
import uuid
from http import HTTPStatus

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .accounts import router as accounts_router
from .movements import router as movements_router
from .ledger import router as ledger_router
from .reports import router as reports_router
from ..exceptions import LedgerError
from ..money import utc_now
from ..config import get_config
from ..logging_config import get_logger, log_action, setup_logging

API_PREFIX = "/api/v1"
CORRELATION_HEADER = "X-Correlation-ID"

logger = get_logger("ledger.api")


class RequestLogger:
    """Log one line per request under the caller's correlation id"""

    def __init__(self, header: str = CORRELATION_HEADER):
        self.header = header

    async def __call__(self, request: Request, call_next):
        correlation_id = request.headers.get(self.header) or uuid.uuid4().hex
        request.state.correlation_id = correlation_id
        started = time.perf_counter()

        response = await call_next(request)

        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
        response.headers[self.header] = correlation_id
        log_action(
            logger, "info", f"{request.method} {request.url.path} -> {response.status_code}",
            action="http_request", correlation_id=correlation_id,
            extra={"status": response.status_code, "duration_ms": elapsed_ms}
        )
        return response


def error_body(status_code: int, message: str, error: str = None) -> dict:
    """Uniform error payload: timestamp, status, error, message"""
    return {
        "timestamp": utc_now().isoformat(),
        "status": status_code,
        "error": error or HTTPStatus(status_code).phrase,
        "message": message
    }


async def handle_ledger_error(request: Request, exc: LedgerError) -> JSONResponse:
    if exc.http_status >= 500:
        logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.http_status, content=error_body(exc.http_status, exc.message))


async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.status_code, str(exc.detail)))


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    messages = ", ".join(
        f"{'.'.join(str(part) for part in error['loc'][1:])}: {error['msg']}" for error in exc.errors()
    )
    return JSONResponse(status_code=400, content=error_body(400, messages, error="Validation Error"))


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled exception on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content=error_body(500, "An unexpected error occurred. Please contact support.")
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application"""
    app = FastAPI(
        title="Account Ledger API",
        description="Account movements with an append-only double-entry ledger",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc"
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.middleware("http")(RequestLogger())

    app.add_exception_handler(LedgerError, handle_ledger_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    # Include routers
    app.include_router(accounts_router, prefix=f"{API_PREFIX}/accounts", tags=["Accounts"])
    app.include_router(movements_router, prefix=f"{API_PREFIX}/movements", tags=["Movements"])
    app.include_router(ledger_router, prefix=f"{API_PREFIX}/ledger", tags=["Ledger"])
    app.include_router(reports_router, prefix=f"{API_PREFIX}/reports", tags=["Reports"])

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "account_ledger_api",
            "version": "1.0.0",
            "timestamp": utc_now().isoformat()
        }

    return app


app = create_app()


def run_server(host: str = None, port: int = None, debug: bool = False):
    """Run the FastAPI server"""
    config = get_config()
    setup_logging(config.log_level, config.log_format)
    uvicorn.run(
        "account_ledger.api:app",
        host=host or config.api_host,
        port=port or config.api_port,
        reload=debug,
        log_level=config.log_level.lower()
    )
