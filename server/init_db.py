import logging

import config
from database import engine, Base
from logging_config import setup_logging
from models import Tenant, Inode, NameBinding, Chunk

logger = logging.getLogger(__name__)


def init_db():
    Base.metadata.create_all(bind=engine)
    logger.info(f"Database tables created: {', '.join(sorted(Base.metadata.tables))}")


if __name__ == "__main__":
    setup_logging(config.LOG_LEVEL)
    init_db()
