"""
Digital Knowledge Network (DKN)

FastAPI application entry point.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from dkn.api.middleware.request_id import RequestIdMiddleware
from dkn.api.v1 import router as api_v1_router
from dkn.config import get_settings
from dkn.database import close_db, init_db
from dkn.kernel.errors import (
    DKNError,
    PermissionDenied,
    StoreFailure,
    Unauthenticated,
    ValidationError,
)
from dkn.logging_config import configure_logging, get_logger
from dkn.schemas.common import HealthResponse

settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan handler.
    
    Runs startup and shutdown tasks.
    """
    # Configure logging first
    configure_logging(
        log_level=settings.log_level,
        environment=settings.environment,
        debug=settings.debug,
    )

    # Startup
    logger.info("Starting %s v%s", settings.project_name, settings.version)
    await init_db()
    logger.info("Database initialized")

    yield

    # Shutdown
    logger.info("Shutting down...")
    await close_db()
    logger.info("Database connections closed")


app = FastAPI(
    title=settings.project_name,
    description="""
    Digital Knowledge Network (DKN)
    
    Role-based access control and content governance for a knowledge base.
    
    ## Features
    
    - **Knowledge items**: Create, update and delete content with category and tag links
    - **Governance**: Flag items, resolve flags, group duplicates, record audits
    - **Accounts**: Roles assigned by administrators, taking effect on the next request
    - **Role catalog**: Display-only projection for the presentation layer
    """,
    version=settings.version,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)


# add_middleware stacks innermost-first; CORS is added last so it wraps everything
app.add_middleware(RequestIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _response_headers(request: Request) -> dict:
    """CORS and request-id headers for error responses."""
    headers = {}
    origin = request.headers.get("origin")
    if origin and origin in settings.cors_origins:
        headers["Access-Control-Allow-Origin"] = origin
        headers["Access-Control-Allow-Credentials"] = "true"
    req_id = getattr(request.state, "request_id", None)
    if req_id:
        headers["X-Request-ID"] = req_id
    return headers


@app.exception_handler(DKNError)
async def domain_exception_handler(request: Request, exc: DKNError):
    """Map domain errors raised by the services to JSON responses."""
    headers = _response_headers(request)
    req_id = getattr(request.state, "request_id", None)
    content = {"detail": exc.message, "code": type(exc).__name__}

    if isinstance(exc, Unauthenticated):
        headers["WWW-Authenticate"] = "Bearer"
    elif isinstance(exc, PermissionDenied):
        content["required"] = exc.required
        content["current_role"] = exc.current_role
        logger.info(
            "Permission denied",
            extra={
                "path": request.url.path,
                "required": exc.required,
                "current_role": exc.current_role,
            },
        )
    elif isinstance(exc, ValidationError) and exc.field:
        content["field"] = exc.field
    elif isinstance(exc, StoreFailure):
        # Details were logged where the failure happened
        content = {"detail": exc.message, "code": type(exc).__name__, "request_id": req_id}

    return JSONResponse(status_code=exc.status_code, content=content, headers=headers)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    headers = _response_headers(request)
    if exc.headers:
        headers.update(exc.headers)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
):
    """Malformed request bodies and parameters are validation errors (400)."""
    errors = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"])
        errors.append({
            "field": field,
            "message": error["msg"],
            "type": error["type"],
        })
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Validation error", "code": "ValidationError", "errors": errors},
        headers=_response_headers(request),
    )


@app.exception_handler(Exception)
async def general_exception_handler(
    request: Request,
    exc: Exception,
):
    """Handle unexpected exceptions with a generic body; details go to the log."""
    logger.exception("Unhandled exception: %s", exc)
    req_id = getattr(request.state, "request_id", None)
    if settings.debug:
        content = {
            "detail": str(exc),
            "type": type(exc).__name__,
            "request_id": req_id,
        }
    else:
        content = {"detail": "Internal server error", "request_id": req_id}
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=content,
        headers=_response_headers(request),
    )


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Check application health."""
    return HealthResponse(status="ok", version=settings.version)


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information."""
    return {
        "name": settings.project_name,
        "version": settings.version,
        "docs": "/docs" if settings.debug else "disabled",
        "api": {
            "v1": settings.api_v1_prefix,
        },
    }


app.include_router(
    api_v1_router,
    prefix=settings.api_v1_prefix,
)


if __name__ == "__main__":
    import uvicorn
    
    uvicorn.run(
        "dkn.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )
