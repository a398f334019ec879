"""Colored sync logger — ANSI-colored console lines for live sync events.

Color scheme:
    🟢 Green   — Client connect / disconnect
    🟡 Yellow  — Developer change staged
    🔵 Blue    — Immediate propagation
    🟣 Magenta — Release of staged changes
    🟠 Cyan    — Backups
    ⚪ Gray    — Scheduler / details
    🔴 Red     — Errors
"""

import logging
import time
from contextlib import contextmanager
from typing import Any


class _Colors:
    """ANSI escape codes for terminal colors."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"
    MAGENTA = "\033[95m"
    CYAN = "\033[96m"
    GRAY = "\033[90m"


class SyncStage:
    """Sync event categories as (label, color, icon)."""

    CLIENT = ("CLIENT", _Colors.GREEN, "🔌")
    STAGE = ("STAGE", _Colors.YELLOW, "⏳")
    PROPAGATE = ("PROPAGATE", _Colors.BLUE, "📡")
    RELEASE = ("RELEASE", _Colors.MAGENTA, "🚀")
    BACKUP = ("BACKUP", _Colors.CYAN, "💾")
    SCHEDULER = ("SCHEDULER", _Colors.GRAY, "⏰")
    ERROR = ("ERROR", _Colors.RED, "❌")


def _format_details(kwargs: dict[str, Any]) -> str:
    if not kwargs:
        return ""
    details = " | ".join(f"{k}={v}" for k, v in kwargs.items())
    return f" {_Colors.GRAY}({details}){_Colors.RESET}"


class SyncEventLogger:
    """Color-coded logger shared by the coordinator, registry and scheduler.

    Usage:
        log = SyncEventLogger(__name__)
        log.event(SyncStage.STAGE, "Change staged", change_id=change.id)
        with log.timed(SyncStage.RELEASE, "Releasing 3 changes"):
            ...
    """

    def __init__(self, name: str):
        self._logger = logging.getLogger(name)

    def event(self, stage: tuple[str, str, str], message: str, **kwargs: Any) -> None:
        label, color, icon = stage
        self._logger.info(
            f"{color}{_Colors.BOLD}{icon} [{label}]{_Colors.RESET} "
            f"{color}{message}{_Colors.RESET}{_format_details(kwargs)}"
        )

    def detail(self, message: str, **kwargs: Any) -> None:
        self._logger.debug(
            f"   {_Colors.GRAY}├─ {message}{_Colors.RESET}{_format_details(kwargs)}"
        )

    def failure(
        self,
        stage: tuple[str, str, str],
        message: str,
        error: BaseException | None = None,
        *,
        level: int = logging.ERROR,
    ) -> None:
        label, _, icon = stage
        formatted = (
            f"{_Colors.RED}{_Colors.BOLD}{icon} [{label}]{_Colors.RESET} "
            f"{_Colors.RED}{message}{_Colors.RESET}"
        )
        if error is not None:
            formatted += f" {_Colors.DIM}→ {type(error).__name__}: {error}{_Colors.RESET}"
        self._logger.log(level, formatted)

    @contextmanager
    def timed(self, stage: tuple[str, str, str], message: str, **kwargs: Any):
        """Log the start and end of a step with its elapsed time."""
        self.event(stage, message, **kwargs)
        start = time.perf_counter()
        try:
            yield
        except Exception as e:
            self.failure(stage, f"{message} — failed after {time.perf_counter() - start:.2f}s", e)
            raise
        else:
            self.event(stage, f"{message} — done in {time.perf_counter() - start:.2f}s")
