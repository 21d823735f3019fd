"""Health check: database connectivity and whether sessions survive a restart."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from wakehub.api.auth import get_token_issuer
from wakehub.core.config import settings
from wakehub.core.database import check_db_connected, get_db
from wakehub.core.tokens import AccessTokenIssuer
from wakehub.schemas.health import HealthResponse

router = APIRouter()


@router.get("", response_model=HealthResponse)
def get_health(
    db: Annotated[Session, Depends(get_db)],
    issuer: Annotated[AccessTokenIssuer, Depends(get_token_issuer)],
) -> HealthResponse:
    """
    Report database connectivity and the signing secret mode.
    An ephemeral secret means every access token dies with the process.
    """
    return HealthResponse(
        environment=settings.APP_ENV,
        database="connected" if check_db_connected(db) else "disconnected",
        signing_secret="ephemeral" if issuer.ephemeral else "configured",
    )
