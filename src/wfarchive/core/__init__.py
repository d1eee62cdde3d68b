# src/wfarchive/core/__init__.py
"""Core infrastructure: Archive, Retention, Configuration, Codec, Logging."""

from wfarchive.core.codec import JsonWorkflowCodec
from wfarchive.core.config import (
    ArchiveSettings,
    DatabaseSettings,
    LoggingSettings,
    load_settings,
    parse_duration,
)
from wfarchive.core.instanceid import StaticInstanceIDService
from wfarchive.core.logging import LogOverrides, configure_logging, get_logger

__all__ = [
    "ArchiveSettings",
    "DatabaseSettings",
    "JsonWorkflowCodec",
    "LogOverrides",
    "LoggingSettings",
    "StaticInstanceIDService",
    "configure_logging",
    "get_logger",
    "load_settings",
    "parse_duration",
]
