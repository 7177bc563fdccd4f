import os
from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from dotenv import load_dotenv

# PUBLIC_INTERFACE
def get_database_url():
    """
    Retrieves the database URL from the environment variable DATABASE_URL.
    """
    load_dotenv()
    db_url = os.getenv("DATABASE_URL")
    if not db_url:
        raise ValueError("DATABASE_URL environment variable not set.")
    return db_url

# PUBLIC_INTERFACE
@lru_cache(maxsize=1)
def get_engine():
    """Builds the engine for the shared storage partition on first use."""
    return create_engine(get_database_url(), future=True, echo=False)

@lru_cache(maxsize=1)
def get_sessionmaker():
    return sessionmaker(autocommit=False, autoflush=False, bind=get_engine())

# PUBLIC_INTERFACE
def SessionLocal():
    """Opens a new session bound to the configured engine."""
    return get_sessionmaker()()
