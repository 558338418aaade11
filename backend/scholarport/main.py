"""
ScholarPort - Academic Articles and Citations
Main FastAPI Application
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from scholarport.config import settings
from scholarport.api import articles, citations
from scholarport.database import init_db
from scholarport.exceptions import InternalError, ScholarPortError, field_errors

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown events."""
    # Startup
    logger.info(f"Starting ScholarPort API ({settings.app_env})")
    await init_db()
    yield
    # Shutdown
    logger.info("Shutting down ScholarPort API")


app = FastAPI(
    title="ScholarPort API",
    description="Academic articles and their citations",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Error handlers ---

@app.exception_handler(ScholarPortError)
async def scholarport_error_handler(request: Request, exc: ScholarPortError):
    if isinstance(exc, InternalError):
        body = exc.to_dict(include_detail=settings.is_development)
    else:
        body = exc.to_dict()
    return JSONResponse(status_code=exc.status_code, content=body)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "success": False,
            "message": "Validation failed",
            "errors": field_errors(exc.errors())
        }
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
        message = f"Not Found - {request.url.path}"
    else:
        message = str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": message},
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    error = InternalError(detail=str(exc))
    return JSONResponse(
        status_code=error.status_code,
        content=error.to_dict(include_detail=settings.is_development)
    )


# Include routers
app.include_router(articles.router, prefix="/api/articles", tags=["Articles"])
app.include_router(citations.router, prefix="/api/citations", tags=["Citations"])


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "ok",
        "version": "1.0.0",
        "service": "scholarport-api"
    }


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": "ScholarPort API",
        "version": "1.0.0",
        "docs": "/docs"
    }
