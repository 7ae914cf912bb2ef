import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import settings
from .database import engine, Base
from .logging_config import setup_logging
from .limiter import limiter
from .middleware.error_handlers import register_exception_handlers
from .middleware.security import SecurityHeadersMiddleware

# Import all models (required for SQLAlchemy to create tables)
from .models import User, OtpRecord, TokenRecord  # noqa: F401

# Import routes
from .routes import auth, users

setup_logging()
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description="Gig marketplace API - OTP authentication and account access",
    version="1.0.0",
    docs_url="/api/docs" if settings.ENABLE_API_DOCS else None,
    redoc_url="/api/redoc" if settings.ENABLE_API_DOCS else None
)

# Rate limiter (per client IP) - storage configured through RATE_LIMIT_STORAGE_URI
app.state.limiter = limiter

# Every error, including framework ones, leaves in the standard envelope
register_exception_handlers(app)

# CORS Middleware
if settings.APP_ENV == "development":
    ALLOWED_ORIGINS = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]
else:
    ALLOWED_ORIGINS = settings.origins_list

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH"],
    allow_headers=["*"],
    max_age=3600,
)

app.add_middleware(SecurityHeadersMiddleware)

# Include routers
app.include_router(auth.router, prefix="/api/v1")
app.include_router(users.router, prefix="/api/v1")


@app.on_event("startup")
async def startup_event():
    """Create tables that do not exist yet"""
    Base.metadata.create_all(bind=engine)
    logger.info(f"✅ {settings.APP_NAME} started")
    logger.info(f"📍 Environment: {settings.APP_ENV}")
    logger.info(f"🌐 CORS: {len(ALLOWED_ORIGINS)} origins allowed")
    logger.info(f"⏱️ Rate limiting: {'enabled' if settings.RATE_LIMIT_ENABLED else 'disabled'}")
    if not settings.sms_configured:
        logger.warning("📵 SMS gateway not configured, OTP codes will not be delivered")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info(f"🛑 {settings.APP_NAME} shutting down")


@app.get("/")
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": "1.0.0",
        "status": "running",
        "docs": "/api/docs" if settings.ENABLE_API_DOCS else "disabled"
    }


@app.get("/api/health")
async def health_check():
    return {
        "status": "healthy",
        "environment": settings.APP_ENV
    }
