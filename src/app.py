"""Album marketplace ordering API.

Web server for the order lifecycle: order creation with payment intents,
gateway callbacks, fulfillment confirmation, and the background tasks that
expire unpaid orders and purge old cancelled ones.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV selects the environment ("development", "test", "production").
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ordering.config import get_settings
from ordering.domain import ordering
from ordering.utils.logging import add_context, clear_context

ordering.init()

logger = structlog.get_logger(__name__)

_DOMAIN_PREFIXES = ("/orders", "/payments")


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Install the configured gateway and run the maintenance scheduler."""
    from ordering.maintenance.scheduler import MaintenanceScheduler
    from payments.gateway import build_gateway, set_gateway

    settings = get_settings()
    set_gateway(
        build_gateway(
            stripe_secret_key=settings.stripe_secret_key,
            stripe_webhook_secret=settings.stripe_webhook_secret,
            max_attempts=settings.gateway_max_attempts,
            initial_backoff=settings.gateway_initial_backoff,
            max_backoff=settings.gateway_max_backoff,
            allow_fake=not settings.is_production,
        )
    )

    scheduler = MaintenanceScheduler.from_settings(ordering, settings)
    app.state.maintenance = scheduler
    scheduler.start()
    logger.info(
        "Ordering service started",
        environment=settings.environment,
        order_ttl_seconds=settings.order_ttl.total_seconds(),
        scheduler_enabled=settings.scheduler_enabled,
    )
    try:
        yield
    finally:
        scheduler.stop()
        logger.info("Ordering service stopped")


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Album Marketplace Ordering API",
    description="Order lifecycle and payment orchestration",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the ordering domain context for order and payment requests."""
    clear_context()
    add_context(method=request.method, path=request.url.path)
    if request.url.path.startswith(_DOMAIN_PREFIXES):
        with ordering.domain_context():
            response = await call_next(request)
        return response
    # Health check and docs
    return await call_next(request)


# ---------------------------------------------------------------------------
# Routers and error handlers
# ---------------------------------------------------------------------------
from ordering.api.errors import register_exception_handlers  # noqa: E402
from ordering.api.routes import order_router, payment_router  # noqa: E402

app.include_router(order_router)
app.include_router(payment_router)
register_exception_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    scheduler = getattr(app.state, "maintenance", None)
    tasks = {}
    if scheduler is not None:
        for task in scheduler.tasks:
            last = task.last_run
            tasks[task.name] = {
                "running": task.running,
                "last_run": last.finished_at.isoformat() if last and last.finished_at else None,
                "last_result": last.result if last else None,
                "last_error": last.error if last else None,
            }
    return JSONResponse(
        content={
            "status": "ok",
            "domain": ordering.name,
            "maintenance": tasks,
        }
    )
