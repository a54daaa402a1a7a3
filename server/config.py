"""
Runtime configuration.

Values come from the environment, optionally seeded from a .env file in the
working directory.
"""

import os

from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./vtfs.db")
SQL_ECHO = _flag("SQL_ECHO")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

HOST = os.getenv("VTFS_HOST", "0.0.0.0")
PORT = int(os.getenv("VTFS_PORT", "8080"))

# Keep the parts of an overwritten chunk that fall outside the write range.
# Off by default: an intersecting chunk is dropped whole.
PRESERVE_PARTIAL_OVERLAP = _flag("VTFS_PRESERVE_PARTIAL_OVERLAP")
