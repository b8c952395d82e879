"""Centralized logging configuration.

Applies per-category log levels from Settings so that noisy loggers
(e.g. httpx/httpcore, SQLAlchemy) can be silenced without affecting the
client's own output.

Usage:
    from web3analytics.infrastructure.logging.log_config import setup_logging
    setup_logging()   # Call once at startup
"""

import logging
import sys

from web3analytics.config import Settings, get_settings


# ── Logger-name → Settings-field mapping ────────────────────────────

_CATEGORY_MAP: dict[str, list[str]] = {
    "log_level_http": [
        "httpx",
        "httpcore",
    ],
    "log_level_sql": [
        "sqlalchemy.engine",
        "sqlalchemy.pool",
        "aiosqlite",
    ],
    "log_level_relay": [
        "web3analytics.infrastructure.relay",
    ],
}

# Level names accepted in addition to the stdlib ones.
_ALIASES = {
    "TRACE": logging.DEBUG,
    "WARN": logging.WARNING,
    "SILENT": logging.CRITICAL + 10,
}


def setup_logging(settings: Settings | None = None) -> None:
    """Configure logging levels from settings. Safe to call more than once."""
    settings = settings or get_settings()
    root_level = _parse_level(settings.log_level)

    # The client's own loggers follow log_level; the host's root logger is
    # only touched when nothing configured it.
    logging.getLogger("web3analytics").setLevel(root_level)
    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            logging.Formatter(
                "%(levelname)-8s %(name)s — %(message)s",
            )
        )
        root.addHandler(handler)

    for settings_field, logger_names in _CATEGORY_MAP.items():
        raw_level: str = getattr(settings, settings_field, "WARNING")
        level = _parse_level(raw_level)

        for name in logger_names:
            logging.getLogger(name).setLevel(level)

    logging.getLogger(__name__).debug(
        "Logging configured — client=%s, http=%s, sql=%s, relay=%s",
        settings.log_level,
        settings.log_level_http,
        settings.log_level_sql,
        settings.log_level_relay,
    )


def _parse_level(raw: str) -> int:
    """Convert a level name string to a logging constant, defaulting to ERROR."""
    name = raw.upper()
    if name in _ALIASES:
        return _ALIASES[name]
    numeric = getattr(logging, name, None)
    if isinstance(numeric, int):
        return numeric
    return logging.ERROR
