"""
Runtime settings read from the environment (and a local .env file, if any).
"""
import os
from dataclasses import dataclass, field
from typing import List

from dotenv import load_dotenv


def _split_origins(raw: str) -> List[str]:
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


@dataclass(frozen=True)
class Settings:
    cors_allow_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Builds settings from CORS_ALLOW_ORIGINS and LOG_LEVEL."""
    load_dotenv()
    return Settings(
        cors_allow_origins=_split_origins(os.getenv("CORS_ALLOW_ORIGINS", "*")),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
