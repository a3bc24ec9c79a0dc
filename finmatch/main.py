"""FastAPI application entry point."""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlmodel import Session

from finmatch import __version__
from finmatch.core.config import get_settings
from finmatch.core.database import get_engine, init_db
from finmatch.rules.loader import load_rules_file
from finmatch.rules.router import router as rules_router
from finmatch.search import labels_router, router as transactions_router
from finmatch.storage.repositories import RuleRepository

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def seed_rules(path: str) -> int:
    """Store rules from a YAML file whose ids are not stored yet."""
    created = 0
    with Session(get_engine()) as session:
        repository = RuleRepository(session)
        for rule in load_rules_file(path):
            if repository.get_rule(rule.id) is None:
                repository.create_rule(rule)
                created += 1
    return created


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    settings = get_settings()
    logger.info("Starting %s...", settings.app_name)

    logger.info("Initializing database...")
    init_db()

    if settings.rules_file:
        created = seed_rules(settings.rules_file)
        logger.info("Seeded %d rule(s) from %s", created, settings.rules_file)

    yield

    logger.info("Shutting down...")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title=settings.app_name,
        description="Condition-based transaction matching and rule-driven labelling",
        version=__version__,
        lifespan=lifespan,
    )

    # CORS middleware - configurable via CORS_ORIGINS env var
    cors_origins_str = os.getenv("CORS_ORIGINS", "*")
    cors_origins = cors_origins_str.split(",") if cors_origins_str != "*" else ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(rules_router)         # /rules
    app.include_router(transactions_router)  # /transactions
    app.include_router(labels_router)        # /labels

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "name": settings.app_name,
            "version": __version__,
            "endpoints": {
                "rules": "/rules - Rule CRUD, apply, dry run and performance",
                "transactions": "/transactions - Create, search and filter tests",
                "labels": "/labels - Label catalogue",
            },
        }

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


app = create_app()
