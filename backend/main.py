"""
Main module for the FastAPI application.
"""
import os
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware

from app.__version__ import __version__
from app.core.config import settings
from app.core.exceptions import register_exception_handlers
from app.core.version import get_features, get_version_info
from app.auth.routes import router as auth_router
from app.api.v1.profile import router as profile_router
from app.api.v1.billing import router as billing_router
from app.pages.routes import public_router as public_pages_router
from app.pages.routes import router as pages_router

# Setup logging
logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# Lifespan event handler
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan event handler - runs on startup and shutdown.
    """
    port = int(os.getenv("PORT", settings.API_PORT))

    print("\n" + "=" * 80)
    print("🚀 Linkaday API Starting")
    print("=" * 80)
    print(f"\n🔧 Environment: {settings.ENVIRONMENT}")

    if settings.PUBLIC_APP_URL:
        print(f"🔗 Callback URL: {settings.PUBLIC_APP_URL.rstrip('/')}/auth/callback")
    else:
        print(f"🔗 Callback URL: http://localhost:{port}/auth/callback")
        print("⚠️  PUBLIC_APP_URL not set - Stripe checkout is disabled")

    for feature, enabled in get_features().items():
        print(f"{'✅' if enabled else '⚠️ '} {feature}: {'configured' if enabled else 'not configured'}")

    missing_stripe = settings.missing_stripe_checkout_settings()
    if missing_stripe:
        logger.warning(f"Stripe checkout missing configuration: {', '.join(missing_stripe)}")

    print(f"\n🌐 Server: http://0.0.0.0:{port}")
    print(f"📖 Docs: http://localhost:{port}/docs")
    print("=" * 80 + "\n")

    yield

    # Shutdown
    logger.info("Linkaday API shutting down")


app = FastAPI(
    title="Linkaday API",
    description="Personalization profiles, LinkedIn login and Pro subscriptions",
    version=__version__,
    lifespan=lifespan,
)

# IMPORTANT: Add SessionMiddleware BEFORE routes that use sessions
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.SESSION_SECRET_KEY,
    https_only=not settings.is_development,
    same_site="lax",
    max_age=settings.SESSION_TTL_DAYS * 24 * 60 * 60,
)

# Configure CORS
if settings.cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

register_exception_handlers(app)

# Include routers
app.include_router(auth_router, prefix="/auth")
app.include_router(profile_router, prefix="/api")
app.include_router(billing_router, prefix="/api")
app.include_router(public_pages_router)
app.include_router(pages_router)


@app.get("/")
async def root():
    """
    Root endpoint for health checks.
    """
    return {"message": "Linkaday API is running"}


@app.get("/health")
async def health():
    """
    Health check endpoint.
    """
    return {"status": "ok"}


@app.get("/version", tags=["health"])
async def get_version():
    """
    Get API version and the optional integrations that are configured.
    """
    return get_version_info()


if __name__ == "__main__":
    """
    Run the application directly.
    """
    import uvicorn

    port = int(os.getenv("API_PORT", settings.API_PORT))
    host = os.getenv("API_HOST", settings.API_HOST)

    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        reload=settings.is_development,
    )
