import logging
import sys
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from pymongo.errors import PyMongoError

from config import Settings, get_settings
from database import Database
from errors import register_error_handlers
from routes import api_router

logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "Cross-Origin-Resource-Policy": "same-origin",
}


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.db.ensure_indexes()
    yield
    app.state.db.close()
    logger.info("Storage connection closed")


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    settings = settings or get_settings()
    if database is None:
        database = Database.connect(settings.database_url, settings.database_name,
                                    settings.database_timeout_ms)

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.state.settings = settings
    app.state.db = database

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        duration = (time.perf_counter() - start) * 1000.0
        logger.info("%s %s %s %.2fms", request.method, request.url.path, response.status_code, duration)
        return response

    register_error_handlers(app, settings)
    app.include_router(api_router, prefix=settings.api_prefix)

    # Health
    @app.get("/")
    def read_root():
        return {"success": True, "message": "Portfolio Blog API running"}

    @app.get("/health")
    def health(request: Request):
        db: Database = request.app.state.db
        status = {
            "backend": "running",
            "database": "unavailable",
            "database_name": db.name,
            "collections": [],
        }
        try:
            status["collections"] = db.list_collection_names()
            status["database"] = "connected"
        except PyMongoError as e:
            status["database"] = f"error: {str(e)[:80]}"
        return {"success": True, "data": status}

    return app


def run() -> None:
    settings = get_settings()
    configure_logging(settings)

    database = Database.connect(settings.database_url, settings.database_name,
                                settings.database_timeout_ms)
    try:
        database.ping()
    except PyMongoError as e:
        logger.critical("MongoDB connection error: %s", e)
        sys.exit(1)
    logger.info("Connected to MongoDB database %s", settings.database_name)

    import uvicorn

    uvicorn.run(create_app(settings, database), host=settings.host, port=settings.port,
                log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
