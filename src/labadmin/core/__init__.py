"""Core configuration and utilities for labadmin."""

from labadmin.core.config import settings
from labadmin.core.logging import setup_logging

__all__ = ["settings", "setup_logging"]
