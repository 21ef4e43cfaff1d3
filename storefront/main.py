"""Service startup: logging, shared clients, routes, client lifecycle."""

import logging

import httpx
import sentry_sdk
import structlog
from aiohttp import web

from api.middleware import request_logging_middleware, security_headers_middleware
from cache.client import RedisClient
from db.client import SupabaseClient
from services.external.billing import BillingClient
from services.history import PurchaseHistoryService
from services.purchases import PurchaseService
from services.settings import SettingsService
from storefront.config import Settings, get_settings

log = structlog.get_logger()


def configure_logging(level: str) -> None:
    """JSON structlog output, filtered at ``level``."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelNamesMapping()[level]),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def _init_sentry(dsn: str) -> None:
    """Initialize Sentry SDK if DSN is configured."""
    if dsn:
        sentry_sdk.init(dsn=dsn, traces_sample_rate=0.1)
        log.info("sentry_initialized")


def create_http_client(timeout: float) -> httpx.AsyncClient:
    """Create the shared httpx client used by outbound integrations."""
    return httpx.AsyncClient(
        limits=httpx.Limits(max_connections=20, max_keepalive_connections=10),
        timeout=httpx.Timeout(timeout, connect=5.0),
    )


def setup_routes(app: web.Application) -> None:
    """Register every HTTP route on ``app``."""
    from api.admin import get_settings as admin_get_settings
    from api.admin import update_settings as admin_update_settings
    from api.health import health_handler
    from api.store import (
        list_individual_resources,
        list_packages,
        list_purchases,
        purchase_individual_resource,
        purchase_package,
    )

    # User storefront
    app.router.add_get("/api/user/store/packages", list_packages)
    app.router.add_post("/api/user/store/purchase", purchase_package)
    app.router.add_get("/api/user/store/purchases", list_purchases)
    app.router.add_get("/api/user/store/individual-resources", list_individual_resources)
    app.router.add_post("/api/user/store/individual-resources/purchase", purchase_individual_resource)

    # Admin
    app.router.add_get("/api/admin/store/settings", admin_get_settings)
    app.router.add_put("/api/admin/store/settings", admin_update_settings)

    # Service
    app.router.add_get("/api/health", health_handler)


def create_app(settings: Settings | None = None) -> web.Application:
    """Create aiohttp application with all store routes.

    Entry point for deployment (``python -m storefront``).
    """
    settings = settings or get_settings()

    configure_logging(settings.log_level)
    _init_sentry(settings.sentry_dsn)

    # Shared clients
    db = SupabaseClient(
        url=settings.supabase_url,
        key=settings.supabase_key.get_secret_value(),
    )
    redis = RedisClient(
        url=settings.upstash_redis_url,
        token=settings.upstash_redis_token.get_secret_value(),
    )
    http_client = create_http_client(settings.billing_timeout_seconds)

    # Services
    settings_service = SettingsService(db, redis, cache_ttl=settings.settings_cache_ttl)
    billing = BillingClient(
        base_url=settings.billing_api_url,
        http_client=http_client,
        api_token=settings.billing_api_token.get_secret_value(),
        timeout=settings.billing_timeout_seconds,
    )

    app = web.Application(middlewares=[request_logging_middleware, security_headers_middleware])
    app["settings"] = settings
    app["db"] = db
    app["redis"] = redis
    app["http_client"] = http_client
    app["settings_service"] = settings_service
    app["billing_client"] = billing
    app["purchase_service"] = PurchaseService(db, settings_service, billing)
    app["history_service"] = PurchaseHistoryService(db)

    async def _close_clients(app: web.Application) -> None:
        await http_client.aclose()
        await db.close()
        await redis.close()
        log.info("shutdown_complete")

    app.on_cleanup.append(_close_clients)
    setup_routes(app)

    log.info("app_created", log_level=settings.log_level)
    return app
