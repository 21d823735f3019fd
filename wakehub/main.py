"""FastAPI application entrypoint. No business logic; only wiring, middleware and startup."""

from dotenv import load_dotenv

load_dotenv()

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from wakehub.api import router as api_router
from wakehub.core.config import Settings, settings
from wakehub.core.database import SessionLocal
from wakehub.core.errors import register_exception_handlers
from wakehub.core.tokens import build_token_issuer
from wakehub.services.accounts import bootstrap_admin

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def run_admin_bootstrap(cfg: Settings) -> None:
    """Upsert BOOTSTRAP_ADMIN_USERNAME with a temporary password, if configured."""
    if not cfg.BOOTSTRAP_ADMIN_USERNAME:
        return
    configured = (
        cfg.BOOTSTRAP_ADMIN_PASSWORD.get_secret_value()
        if cfg.BOOTSTRAP_ADMIN_PASSWORD
        else None
    )
    db = SessionLocal()
    try:
        user, password, created = bootstrap_admin(db, cfg.BOOTSTRAP_ADMIN_USERNAME, configured)
        logger.info(
            "Bootstrap admin %s: %s",
            "created" if created else "reset",
            user.username,
        )
    finally:
        db.close()
    if configured is None:
        # Only way for the operator to learn a generated password.
        logger.warning("Bootstrap admin temporary password: %s", password)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    run_admin_bootstrap(settings)
    yield


app = FastAPI(
    title="Wakehub API",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)
app.state.token_issuer = build_token_issuer(settings)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.APP_ENV == "dev" else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
register_exception_handlers(app)

app.include_router(api_router, prefix=settings.API_PREFIX)


@app.get("/")
def root() -> dict[str, str]:
    """Root route; minimal payload for discovery."""
    return {"message": "Wakehub API"}
