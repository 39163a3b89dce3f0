"""Application entry point."""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from autoflow.api.container import get_container
from autoflow.api.dependencies import limiter
from autoflow.api.routes.flows import router as flows_router
from autoflow.api.routes.index import router as index_router
from autoflow.shared.logging import setup_logging

log = structlog.get_logger()


def _apply_logging_config(container):
    """Apply logging from container config (stdout + optional file)."""
    c = container.config
    setup_logging(
        level=c.log_level,
        file_path=c.log_file or "",
        rotation_max_mb=c.log_rotation_max_mb,
        rotation_backups=c.log_rotation_backups,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: setup logging, run due autorun flows. Shutdown: close the LLM client."""
    container = get_container()
    _apply_logging_config(container)
    log.info(
        "startup_begin",
        llm_provider=container.config.llm.provider,
        vault=str(container.documents.root),
    )
    if container.config.flows.autorun_on_startup:
        results = await container.autorun_scheduler.run_due_flows()
        log.info("autorun_complete", ran=len(results), failed=sum(1 for r in results if not r.success))
    log.info("startup_complete")
    yield
    log.info("shutdown_begin")
    if hasattr(container.llm, "close"):
        try:
            await container.llm.close()
        except Exception:  # noqa: BLE001
            log.debug("llm_close_error", exc_info=True)
    log.info("shutdown_complete")


app = FastAPI(
    title="Autoflow",
    version="0.1.0",
    description="Declarative note workflows: search, transform with an LLM, write back",
    lifespan=lifespan,
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS
container = get_container()
app.add_middleware(
    CORSMiddleware,
    allow_origins=container.config.security.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(flows_router)
app.include_router(index_router)


@app.get("/health")
@limiter.limit("100/minute")
async def health(request: Request) -> dict:
    """Health check with LLM availability."""
    container = get_container()
    llm_available = await container.llm.is_available()
    return {
        "status": "ok",
        "service": "autoflow",
        "llm_provider": container.config.llm.provider,
        "llm_available": llm_available,
    }
