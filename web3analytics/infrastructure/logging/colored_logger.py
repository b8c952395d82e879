"""Colored delivery logger — ANSI-colored console logging for the event pipeline.

Provides a DeliveryLogger with color-coded output per delivery stage,
making it easy to follow one event from normalization to the index write.

Color scheme:
    🟡 Yellow  — Normalization
    🟢 Green   — Document creation / completion
    🔵 Blue    — Index append
    🔷 Cyan    — Relayed registration
    🔴 Red     — Errors
    ⚪ Gray    — Timing / details
"""

import logging
import time
from contextlib import contextmanager
from typing import Any


# ── ANSI Color Codes ─────────────────────────────────────────────────

class _Colors:
    """ANSI escape codes for terminal colors."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"
    CYAN = "\033[96m"
    GRAY = "\033[90m"


# ── Delivery Stage Definitions ───────────────────────────────────────

class DeliveryStage:
    """Predefined delivery stages with colors and icons."""

    NORMALIZE = ("NORMALIZE", _Colors.YELLOW, "🧹")
    CREATE = ("CREATE", _Colors.GREEN, "📄")
    INDEX = ("INDEX", _Colors.BLUE, "🗂️")
    REGISTER = ("REGISTER", _Colors.CYAN, "🔑")
    ERROR = ("ERROR", _Colors.RED, "❌")
    COMPLETE = ("COMPLETE", _Colors.GREEN, "✅")


# ── DeliveryLogger ───────────────────────────────────────────────────

class DeliveryLogger:
    """Color-coded logger for event delivery.

    Usage:
        log = DeliveryLogger("EventDeliveryQueue")
        with log.timed_step(DeliveryStage.CREATE, "Creating event #3"):
            doc = await store.create_document("Event", content)
        log.detail("Document id", id=doc.id)
    """

    def __init__(self, component_name: str):
        self._logger = logging.getLogger(component_name)

    def step_start(self, stage: tuple[str, str, str], message: str, **kwargs: Any) -> None:
        label, color, icon = stage
        formatted = (
            f"{color}{_Colors.BOLD}{icon} [{label}]{_Colors.RESET} "
            f"{color}{message}{_Colors.RESET}"
        )
        self._logger.debug(formatted + self._details(kwargs))

    def step_complete(self, stage: tuple[str, str, str], message: str, **kwargs: Any) -> None:
        label, color, icon = stage
        formatted = (
            f"{color}{icon} [{label}]{_Colors.RESET} "
            f"{_Colors.GREEN}✓ {message}{_Colors.RESET}"
        )
        self._logger.debug(formatted + self._details(kwargs))

    def step_error(self, stage: tuple[str, str, str], message: str, error: BaseException | None = None) -> None:
        """Log a delivery error in red. Always emitted at ERROR level."""
        label, _, icon = stage
        formatted = (
            f"{_Colors.RED}{_Colors.BOLD}❌ [{label}]{_Colors.RESET} "
            f"{_Colors.RED}{message}{_Colors.RESET}"
        )
        if error:
            formatted += f" {_Colors.DIM}→ {type(error).__name__}: {error}{_Colors.RESET}"
        self._logger.error(formatted)

    def detail(self, message: str, **kwargs: Any) -> None:
        formatted = f"   {_Colors.GRAY}├─ {message}{_Colors.RESET}"
        self._logger.debug(formatted + self._details(kwargs))

    @staticmethod
    def _details(kwargs: dict[str, Any]) -> str:
        if not kwargs:
            return ""
        details = " | ".join(f"{k}={v}" for k, v in kwargs.items())
        return f" {_Colors.GRAY}({details}){_Colors.RESET}"

    @contextmanager
    def timed_step(self, stage: tuple[str, str, str], message: str, **kwargs: Any):
        """Context manager that logs start/end with elapsed time.

        Failures are logged and re-raised.
        """
        self.step_start(stage, message, **kwargs)
        start = time.perf_counter()
        try:
            yield
        except Exception as e:
            elapsed = time.perf_counter() - start
            self.step_error(stage, f"{message} — failed after {elapsed:.2f}s", error=e)
            raise
        else:
            elapsed = time.perf_counter() - start
            self.step_complete(stage, f"{message} — {elapsed:.2f}s", **kwargs)
