from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from starlette.exceptions import HTTPException as StarletteHTTPException
from datetime import datetime, timezone
from moviereviews.config import get_settings
from moviereviews.database import init_db
from moviereviews.errors import InternalError, ReviewAPIError, ValidationError
from moviereviews.middleware.security import SecurityHeadersMiddleware
from moviereviews.routes import movies, reviews
from moviereviews.utils.dependencies import get_tmdb_service
import logging

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


# ============================================
# Application Lifespan Management
# ============================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan events

    Startup:
    - Make sure database tables exist
    - Log configuration summary
    """
    logger.info("=" * 60)
    logger.info("🚀 Movie Reviews API Starting...")
    logger.info(f"   Environment: {settings.environment}")
    logger.info(f"   CORS Origins: {len(allowed_origins)} configured")
    logger.info(f"   TMDB configured: {settings.tmdb.configured}")
    logger.info("=" * 60)

    try:
        init_db()
    except Exception as e:
        logger.error(f"Failed to initialize database: {str(e)}")
        raise

    yield

    logger.info("🛑 Movie Reviews API Shutting Down...")


app = FastAPI(
    title="Movie Reviews API",
    description="Movie reviews, likes and social feed with TMDB integration",
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# ============================================
# Security Configuration
# ============================================

# CORS - Whitelist allowed origins
allowed_origins = [
    "http://localhost:3000",
    "http://localhost:5173",
]
if settings.frontend_url:
    allowed_origins.append(settings.frontend_url)

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

app.add_middleware(SecurityHeadersMiddleware, enable_hsts=settings.environment == "production")

# Trusted Hosts - Production only
if settings.environment == "production" and settings.trusted_hosts:
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.trusted_hosts)


# ============================================
# Exception Handlers - error payload + CORS on every error
# ============================================

def _with_cors(request: Request, response: JSONResponse) -> JSONResponse:
    """
    Error responses built by handlers can bypass CORSMiddleware (500s);
    add the headers for whitelisted origins so the browser can read them
    """
    origin = request.headers.get("origin")
    if origin in allowed_origins:
        response.headers["Access-Control-Allow-Origin"] = origin
        response.headers["Access-Control-Allow-Credentials"] = "true"
    return response


@app.exception_handler(ReviewAPIError)
async def review_api_exception_handler(request: Request, exc: ReviewAPIError):
    """Structured {status, message, details} payload for domain errors"""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    response = JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder(exc.to_payload()),
        headers=exc.headers
    )
    return _with_cors(request, response)


@app.exception_handler(RequestValidationError)
async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed query/body/path parameters are reported as ValidationError (400)"""
    error = ValidationError(
        "Invalid request parameters",
        details=[
            {"field": ".".join(str(p) for p in e.get("loc", ())), "error": e.get("msg")}
            for e in exc.errors()
        ]
    )
    response = JSONResponse(status_code=error.status_code, content=jsonable_encoder(error.to_payload()))
    return _with_cors(request, response)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Framework HTTP errors (404 route not found, 405, ...) in the same shape"""
    response = JSONResponse(
        status_code=exc.status_code,
        content={"status": "error", "message": exc.detail, "details": None},
        headers=getattr(exc, "headers", None)
    )
    return _with_cors(request, response)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """
    Catch-all handler: log the traceback, never leak internal details
    """
    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)

    error = InternalError()
    response = JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error.to_payload()
    )
    return _with_cors(request, response)


# ============================================
# Routes
# ============================================

@app.get("/", tags=["Health"])
async def root():
    """Basic health check"""
    return {
        "message": "Movie Reviews API",
        "version": API_VERSION,
        "status": "healthy",
        "docs": "/docs"
    }


@app.get("/health", tags=["Health"])
def health_check():
    """Detailed health check for monitoring"""
    return {
        "status": "healthy",
        "api_version": API_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "tmdb": {
            "configured": settings.tmdb.configured,
            "metadata_cache": get_tmdb_service().cache.get_stats()
        }
    }


app.include_router(reviews.router)
app.include_router(movies.router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=8000,
        log_level="info"
    )
