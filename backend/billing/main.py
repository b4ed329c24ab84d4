"""FastAPI application entry point"""
import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from billing.core.config import settings
from billing.core.logging import setup_logging
from billing.db.session import init_db

# Import routers
from billing.api import health, payments, webhooks

setup_logging()

logger = logging.getLogger(__name__)
api_access_logger = logging.getLogger("api_access")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    # Startup
    logger.info(f"Starting billing service ({settings.ENVIRONMENT})")

    logger.info("Initializing database...")
    try:
        init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise

    if not settings.STRIPE_WEBHOOK_SECRET:
        logger.error("STRIPE_WEBHOOK_SECRET is not set - /api/v1/webhooks/stripe will answer 500")

    yield

    # Shutdown
    logger.info("Shutting down...")


# Create FastAPI app
app = FastAPI(
    title="Billing Service",
    description="Stripe payments, webhook processing and Zeus subscription settlement",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
allowed_origins = [settings.FRONTEND_URL]
if settings.ENVIRONMENT == "development":
    allowed_origins.extend([
        "http://localhost:3000",
        "http://localhost:8000",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:8000"
    ])

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(webhooks.router)
app.include_router(payments.router)
app.include_router(health.router)


@app.middleware("http")
async def access_log_middleware(request: Request, call_next):
    """Log method, path, status and duration of every request"""
    start = time.perf_counter()
    status_code = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
        return response
    finally:
        duration_ms = (time.perf_counter() - start) * 1000
        api_access_logger.info(f"{request.method} {request.url.path} {status_code} {duration_ms:.1f}ms")


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Request body validation errors are answered with 400"""
    details = [
        {
            "message": error.get("msg"),
            "path": [str(part) for part in error.get("loc", ()) if part != "body"],
        }
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={"error": "ValidationError", "details": details}
    )


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler"""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error"}
    )


# Prometheus metrics endpoint
@app.get("/metrics")
def metrics_endpoint():
    """Prometheus metrics endpoint"""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


# Health check endpoint
@app.get("/health")
def health_check():
    """Health check endpoint"""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    # Must pass app as import string for reload to work
    if settings.ENVIRONMENT == "development":
        uvicorn.run("billing.main:app", host="0.0.0.0", port=8000, reload=True)
    else:
        uvicorn.run(app, host="0.0.0.0", port=8000, timeout_graceful_shutdown=30)
