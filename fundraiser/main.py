"""
FastAPI main application
Golf Outing Fundraiser - registrations, teams and sponsors

Routers in fundraiser/api/, all mounted under /api:
- health.py: Health check and database ping
- teams.py: Team allocation and spot lookups
- sponsor.py: Sponsor profiles
- admin.py: Authenticated listings
- checkout.py: Hosted Stripe checkout sessions
- webhook.py: Stripe payment callbacks

The Database and Settings live on app.state and reach routes through
fundraiser.dependencies.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from fundraiser.api import admin, checkout, health, sponsor, teams, webhook
from fundraiser.config import APP_VERSION, Settings, get_settings
from fundraiser.db import Database
from fundraiser.errors import FundraiserError


logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def _describe_validation_error(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(p) for p in error.get("loc", ()) if p != "body")
        parts.append(f"{location}: {error.get('msg')}" if location else error.get("msg", ""))
    return "Invalid request: " + "; ".join(parts)


def register_exception_handlers(app: FastAPI) -> None:
    """Render every failure as {"error": message}"""

    @app.exception_handler(FundraiserError)
    async def fundraiser_error_handler(request: Request, exc: FundraiserError):
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        message = _describe_validation_error(exc)
        logger.warning(f"{request.method} {request.url.path} -> 400: {message}")
        return JSONResponse(status_code=400, content={"error": message})

    @app.exception_handler(PyMongoError)
    async def database_error_handler(request: Request, exc: PyMongoError):
        logger.error(f"❌ Database error in {request.method} {request.url.path}: {exc}")
        return JSONResponse(status_code=500, content={"error": "Database error"})


def create_app(settings: Settings = None, database: Database = None) -> FastAPI:
    """
    Build the application

    Args:
        settings: Server settings (loaded from config/settings.yaml when omitted)
        database: Pre-built Database (one is created from settings when omitted)

    Returns:
        FastAPI app whose lifespan connects and closes the database
    """
    settings = settings or get_settings()
    database = database or Database(settings.mongodb.uri, settings.mongodb.database)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown events"""
        try:
            await database.connect()
        except Exception as e:
            logger.error(f"❌ Failed to connect to database: {e}")
            raise
        logger.info(f"✅ Server started (version {APP_VERSION})")

        yield

        await database.close()
        logger.info("🛑 Server shutting down")

    app = FastAPI(
        title="Golf Outing Fundraiser API",
        description="Registrations, teams, sponsors and Stripe payments for a golf outing fundraiser",
        version=APP_VERSION,
        lifespan=lifespan
    )
    app.state.settings = settings
    app.state.database = database

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # ==================== INCLUDE ROUTERS ====================

    app.include_router(health.router, prefix="/api")
    app.include_router(teams.router, prefix="/api")
    app.include_router(sponsor.router, prefix="/api")
    app.include_router(admin.router, prefix="/api")
    app.include_router(checkout.router, prefix="/api")
    app.include_router(webhook.router, prefix="/api")

    return app


# Setup logging
setup_logging(get_settings().log_level)

# ASGI entry point: uvicorn fundraiser.main:app
app = create_app()


# ==================== RUN SERVER ====================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
