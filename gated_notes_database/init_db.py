"""
Database initialization script.

Run this script to create the key-value table backing the notes partition.
"""
from loguru import logger

from gated_notes_database.db import get_engine
from gated_notes_database.models import Base

# PUBLIC_INTERFACE
def init_db(engine=None):
    """Creates the key-value table if it does not exist."""
    Base.metadata.create_all(bind=engine or get_engine())

if __name__ == "__main__":
    init_db()
    logger.info("Database tables created successfully.")
