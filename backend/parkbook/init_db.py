"""
Create the ParkBook tables on the configured database.

Production schemas are owned by the managed database; this is for local
development and throwaway environments::

    python -m parkbook.init_db
"""

import logging

from sqlalchemy.engine import Engine

from . import models  # noqa: F401  (registers tables on Base.metadata)
from .database import Base, engine

logger = logging.getLogger(__name__)


def create_tables(target: Engine = engine) -> None:
    Base.metadata.create_all(bind=target)
    logger.info("Created tables: %s", ", ".join(sorted(Base.metadata.tables)))


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    create_tables()
