"""
Storefront Application

JSON API for the Kurti apparel storefront, backed by a WooCommerce site.
"""

import asyncio
import logging
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from dotenv import load_dotenv

from .core.config import settings
from .core.exceptions import StorefrontError
from .core.session import SESSION_HEADER, session_cleanup_job
from .routes import (
    auth_callback_router,
    auth_router,
    cart_router,
    checkout_router,
    orders_router,
    products_router,
    woocommerce_router,
)
from .services.identity import close_identity_client
from .services.woocommerce import close_woocommerce_client

# Load environment variables
load_dotenv()

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    logger.info("Storefront starting up...")
    logger.info(f"Commerce backend: {settings.api_base_url or 'NOT SET'}")
    logger.info(f"WooCommerce configured: {settings.woocommerce_configured}")
    logger.info(f"Identity provider configured: {settings.identity_configured}")

    cleanup_task = asyncio.create_task(session_cleanup_job())

    yield

    logger.info("Storefront shutting down...")
    cleanup_task.cancel()
    with suppress(asyncio.CancelledError):
        await cleanup_task
    await close_woocommerce_client()
    await close_identity_client()


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Apparel storefront API backed by WooCommerce",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.site_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[SESSION_HEADER],
)


@app.exception_handler(StorefrontError)
async def storefront_error_handler(request: Request, exc: StorefrontError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc!r}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


# Include routers
app.include_router(products_router)
app.include_router(cart_router)
app.include_router(checkout_router)
app.include_router(orders_router)
app.include_router(auth_router)
app.include_router(auth_callback_router)
app.include_router(woocommerce_router)


@app.get("/")
async def home():
    return {
        "message": "Kurti Storefront API",
        "docs": "/docs",
        "endpoints": {
            "products": "/api/products",
            "cart": "/api/cart",
            "checkout": "/api/checkout",
            "orders": "/api/orders",
            "auth": "/api/auth",
            "woocommerce": "/api/woocommerce",
        },
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": "storefront",
        "woocommerce_configured": settings.woocommerce_configured,
        "identity_configured": settings.identity_configured,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "storefront.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
