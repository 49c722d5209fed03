#!/usr/bin/env python3
# backend/init_db.py
"""
Database initialization script.

Creates every ledger table that does not exist yet. Safe to re-run.

This script can be run from any directory:
    python backend/init_db.py
    cd backend && python init_db.py
"""
import logging
import sys
from pathlib import Path

# Add the backend directory to Python path so 'wealth' package is importable
backend_dir = Path(__file__).parent
sys.path.insert(0, str(backend_dir))

from wealth.database import engine
from wealth.models import Base
from wealth.utils import setup_logging

logger = logging.getLogger("init_db")


def init_db() -> None:
    """Create all database tables defined in models."""
    logger.info(f"Creating tables on {engine.url.render_as_string(hide_password=True)}")
    Base.metadata.create_all(bind=engine)
    logger.info(f"Tables ready: {', '.join(sorted(Base.metadata.tables))}")


if __name__ == "__main__":
    setup_logging()
    init_db()
