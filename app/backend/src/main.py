"""Entrypoint for the FastAPI application."""

import os
from dotenv import load_dotenv

# Load .env locally only; deployed environments inject variables directly.
env_path = os.path.join(os.path.dirname(__file__), "../.env")
if os.path.exists(env_path):
    load_dotenv(dotenv_path=os.path.abspath(env_path))

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import (
    account_requests,
    activity_logs,
    affiliates,
    analytics,
    cash_calls,
    health,
    users,
)
from .core.config import Settings, get_settings
from .core.errors import register_exception_handlers
from .core.identity import IdentityProvider, build_identity_provider
from .core.logging import configure_logging
from .db import Database
from .services.notifications import LoggingNotifier, Notifier

LOGGER = structlog.get_logger(__name__)


def create_app(
    settings: Settings | None = None,
    *,
    database: Database | None = None,
    identity_provider: IdentityProvider | None = None,
    notifier: Notifier | None = None,
) -> FastAPI:
    """Build the application and the collaborators its routes share."""

    settings = settings or get_settings()
    configure_logging(settings.log_level)
    app = FastAPI(title=settings.app_name, version="0.1.0")

    database = database or Database(settings.database_url)
    if settings.auto_create_tables:
        database.create_all()

    app.state.settings = settings
    app.state.database = database
    app.state.identity_provider = identity_provider or build_identity_provider(settings)
    app.state.notifier = notifier or LoggingNotifier()

    register_exception_handlers(app)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    prefix = settings.api_prefix
    app.include_router(health.router, prefix=prefix)
    app.include_router(account_requests.router, prefix=prefix)
    app.include_router(users.router, prefix=prefix)
    app.include_router(affiliates.router, prefix=prefix)
    app.include_router(cash_calls.router, prefix=prefix)
    app.include_router(analytics.router, prefix=prefix)
    app.include_router(activity_logs.router, prefix=prefix)

    LOGGER.info(
        "application_created",
        environment=settings.environment,
        identity_provider=settings.identity_provider,
        enforce_cash_call_transitions=settings.enforce_cash_call_transitions,
    )
    return app


app = create_app()
