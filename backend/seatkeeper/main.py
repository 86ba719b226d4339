from __future__ import annotations

import logging
import sys

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api import admin_router, auth_router, players_router, report_router, seats_router, sessions_router
from .core.config import settings
from .core.db import SessionLocal, engine
from .core.exceptions import SeatkeeperError
from .core.security import get_password_hash
from .models.db import Base, User


def configure_logging() -> None:
    """Configure structured logging for the application."""
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    # Set specific log levels for third-party libraries
    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.ERROR)


logger = logging.getLogger(__name__)
configure_logging()


def ensure_admin() -> None:
    db = SessionLocal()
    try:
        exists = db.query(User).filter(User.role == "admin").first()
        if not exists:
            logger.info("Creating default admin user")
            db.add(
                User(
                    username=settings.ADMIN_USERNAME,
                    password_hash=get_password_hash(settings.ADMIN_PASSWORD),
                    role="admin",
                    is_active=True,
                )
            )
            db.commit()
            logger.info(f"Admin user '{settings.ADMIN_USERNAME}' created successfully")
        else:
            logger.info("Admin user already exists")
    finally:
        db.close()


def create_app() -> FastAPI:
    app = FastAPI(title="Seatkeeper", version="1.0.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_list(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log incoming requests."""
        logger.info(f"Request: {request.method} {request.url.path}")
        response = await call_next(request)
        logger.info(f"Response: {request.method} {request.url.path} - Status: {response.status_code}")
        return response

    @app.exception_handler(SeatkeeperError)
    async def domain_error_handler(request: Request, exc: SeatkeeperError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.kind}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    app.include_router(auth_router)
    app.include_router(seats_router)
    app.include_router(sessions_router)
    app.include_router(players_router)
    app.include_router(admin_router)
    app.include_router(report_router)

    @app.get("/")
    def root():
        return {"ok": True, "service": "seatkeeper", "docs": "/docs"}

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.on_event("startup")
    def startup():
        logger.info("Starting application...")
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created/verified")
        ensure_admin()
        logger.info("Application startup complete")

    return app


app = create_app()
