"""
Error capture configuration management.
"""

import re
from functools import lru_cache
from typing import Dict, List, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Error capture settings loaded from environment variables."""

    # Identity
    application_name: str = "Application"
    machine_name: Optional[str] = None  # Falls back to socket.gethostname() if not set

    # Rollup
    rollup_per_server: bool = False

    # Redaction: name -> replacement (None means blank out)
    form_filters: Dict[str, Optional[str]] = {}
    cookie_filters: Dict[str, Optional[str]] = {}

    # Exception metadata keys to copy into custom data, e.g. "SQL.*|Redis-.*"
    data_include_pattern: Optional[str] = None

    # Exception classes defined in these modules are unwrapped to their root cause
    builtin_exception_modules: List[str] = ["builtins"]

    # Logging
    log_level: str = "INFO"

    class Config:
        env_prefix = "ERRORCAPTURE_"
        env_file = ".env"
        case_sensitive = False

    @field_validator("data_include_pattern")
    @classmethod
    def _validate_pattern(cls, value: Optional[str]) -> Optional[str]:
        if not value:
            return None
        try:
            re.compile(value)
        except re.error as e:
            raise ValueError(f"Invalid data include pattern: {e}") from e
        return value


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance, read from the environment once."""
    return Settings()
