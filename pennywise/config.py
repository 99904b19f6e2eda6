"""Configuration for the dashboard client.

Values come from environment variables with local-development defaults,
matching the API server's default port.
"""

import logging
import os
from typing import Optional

_TRUTHY = {"1", "true", "yes", "on"}


def env_flag(name: str, default: bool = False) -> bool:
    """Read a boolean flag from the environment."""
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


API_BASE_URL = os.getenv("PENNYWISE_API_URL", "http://localhost:8080")
CATEGORIES_PATH = os.getenv("PENNYWISE_CATEGORIES_PATH", "/api/categories")

TOKEN_ENV_VAR = "PENNYWISE_TOKEN"
SESSION_TOKEN_KEY = "token"

LOG_LEVEL = os.getenv("PENNYWISE_LOG_LEVEL", "INFO")

# Rows shown in the collapsed transactions table
VISIBLE_TRANSACTIONS = 6

# Off reproduces the dashboard as shipped: "Show More" keeps the first rows
# and only switches the table to its scrollable style.
REVEAL_ALL_ON_SHOW_MORE = env_flag("PENNYWISE_REVEAL_ALL")

# Off: a created budget only closes its modal, budgets are not reloaded.
REFRESH_BUDGETS_ON_CREATE = env_flag("PENNYWISE_REFRESH_BUDGETS")


def configure_logging(level: Optional[str] = None) -> None:
    """Set up root logging once for the Streamlit entry point."""
    logging.basicConfig(
        level=(level or LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
