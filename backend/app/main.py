"""
ShopDev Back Office - Backend API
Catalog, orders, vouchers, invoices, debts, delivery, inventory and site content
"""
import logging
import time
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(env_path)

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from app.api import (
    activities, advertisements, auth, catalog, debts, delivery, homepage, inventory,
    invoices, news, notifications, orders, translations, uploads, users, vouchers,
)
from app.api.error_handlers import register_error_handlers
from app.core.config import settings
from app.core.database import get_db_connection_with_retry, CONNECTION_TIMEOUT
from app.core.logging_config import configure_logging
from app.core.rate_limit import RateLimitMiddleware

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.API_TITLE,
    version=settings.API_VERSION,
    description=settings.API_DESCRIPTION,
)

app.add_middleware(RateLimitMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
    expose_headers=["X-RateLimit-Limit", "X-RateLimit-Remaining", "Retry-After"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    duration_ms = round((time.time() - start_time) * 1000, 2)
    logger.info(f"{request.method} {request.url.path} {response.status_code} {duration_ms}ms")
    return response


register_error_handlers(app)

# Include API routers
prefix = settings.API_PREFIX
app.include_router(auth.router, prefix=f"{prefix}/auth", tags=["Auth"])
app.include_router(users.router, prefix=f"{prefix}/users", tags=["Users"])
app.include_router(catalog.categories_router, prefix=f"{prefix}/categories", tags=["Categories"])
app.include_router(catalog.brands_router, prefix=f"{prefix}/brands", tags=["Brands"])
app.include_router(catalog.products_router, prefix=f"{prefix}/products", tags=["Products"])
app.include_router(orders.router, prefix=f"{prefix}/orders", tags=["Orders"])
app.include_router(vouchers.router, prefix=f"{prefix}/vouchers", tags=["Vouchers"])
app.include_router(invoices.router, prefix=f"{prefix}/invoices", tags=["Invoices"])
app.include_router(debts.router, prefix=f"{prefix}/debts", tags=["Debts"])
app.include_router(delivery.router, prefix=f"{prefix}/delivery", tags=["Delivery"])
app.include_router(inventory.router, prefix=f"{prefix}/inventory", tags=["Inventory"])
app.include_router(notifications.router, prefix=f"{prefix}/notifications", tags=["Notifications"])
app.include_router(translations.router, prefix=f"{prefix}/translations", tags=["Translations"])
app.include_router(homepage.router, prefix=f"{prefix}/homepage", tags=["Homepage"])
app.include_router(news.router, prefix=f"{prefix}/news", tags=["News"])
app.include_router(activities.router, prefix=f"{prefix}/activities", tags=["Activities"])
app.include_router(advertisements.router, prefix=f"{prefix}/advertisements", tags=["Advertisements"])
app.include_router(uploads.router, prefix=f"{prefix}/uploads", tags=["Uploads"])

# Uploaded files are served from local disk
upload_dir = Path(settings.UPLOAD_DIR)
upload_dir.mkdir(parents=True, exist_ok=True)
app.mount(settings.UPLOAD_BASE_URL, StaticFiles(directory=str(upload_dir)), name="uploads")


@app.get("/")
async def root():
    """Root endpoint - API status"""
    return {
        "message": settings.API_TITLE,
        "status": "online",
        "version": settings.API_VERSION,
        "description": settings.API_DESCRIPTION,
        "docs": "/docs",
    }


@app.get("/health")
async def health():
    """Health check endpoint for monitoring - tests database connectivity"""
    start_time = time.time()

    db_status = "unknown"
    db_latency_ms = None
    db_error = None

    try:
        # Minimal retry for a fast check
        conn = get_db_connection_with_retry(max_retries=1, retry_delay=0.5)
        cursor = conn.cursor()

        db_start = time.time()
        cursor.execute("SELECT 1")
        cursor.fetchone()
        db_latency_ms = round((time.time() - db_start) * 1000, 2)

        cursor.close()
        conn.close()
        db_status = "connected"
    except Exception as e:
        logger.warning(f"Health check database ping failed: {e}")
        db_status = "disconnected"
        db_error = str(e)

    total_latency_ms = round((time.time() - start_time) * 1000, 2)

    return {
        "status": "healthy" if db_status == "connected" else "degraded",
        "service": "shopdev-api",
        "version": settings.API_VERSION,
        "database": {
            "status": db_status,
            "latency_ms": db_latency_ms,
            "error": db_error,
            "connection_timeout_s": CONNECTION_TIMEOUT
        },
        "total_latency_ms": total_latency_ms
    }
