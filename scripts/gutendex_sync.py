import logging
import sys

from config import settings
from database import SessionLocal
from gutendex import build_client, sync_gutendex
from logging_config import setup_logging

logger = logging.getLogger("gutendex_sync")


def main() -> int:
    setup_logging()
    with build_client() as client:
        db = SessionLocal()
        try:
            updated = sync_gutendex(db, client, delay=settings.GUTENDEX_DELAY_SECONDS)
        except Exception:
            logger.exception("Gutendex sync failed")
            return 1
        finally:
            db.close()

    logger.info("Sync complete, updated %s books", updated)
    return 0


if __name__ == "__main__":
    sys.exit(main())
