"""Create all tables. Run on app startup."""
import logging

from sqlalchemy.engine import Engine

from stockledger.db.base import Base
from stockledger.models import inventory, category, supplier, purchase, batch  # noqa: F401 - register models

logger = logging.getLogger(__name__)


def init_db(engine: Engine) -> None:
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ready: %s", ", ".join(sorted(Base.metadata.tables)))
