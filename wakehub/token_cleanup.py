"""
CLI entrypoint for the refresh token cleanup job. Run from cron, e.g.:

  python -m wakehub.token_cleanup

Or hourly: 0 * * * * cd /path/to/wakehub && .venv/bin/python -m wakehub.token_cleanup
"""

import logging
import sys

from wakehub.core.database import SessionLocal
from wakehub.services.refresh_tokens import RefreshTokenLedger

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main() -> int:
    """Delete every expired refresh token."""
    db = SessionLocal()
    try:
        deleted = RefreshTokenLedger(db).purge_expired()
        logger.info("Refresh token cleanup completed: tokens_deleted=%s", deleted)
        return 0
    except Exception as e:
        logger.exception("Refresh token cleanup failed: %s", e)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
