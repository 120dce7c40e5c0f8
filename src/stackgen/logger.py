"""
Structured logging for generation runs.

Outputs JSON-formatted event lines so runs can be grepped or shipped to a log
store. Only run-level events are logged here; module-level diagnostics go
through the ordinary ``logging.getLogger(__name__)`` loggers.

Logged events:
- generation.started
- generation.completed
- generation.failed
- secrets.missing

Usage:
    from stackgen.logger import GenerationLogger

    events = GenerationLogger(artifact="docker-compose", project="/src/app")
    events.log_started(session="default", manifest_count=3)
    events.log_completed(path=".devcontainer/docker-compose.yml", service_count=4)
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional

_event_logger = logging.getLogger("stackgen.events")

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def configure_logging(level: str = "info", fmt: str = "text") -> None:
    """
    Configure the ``stackgen`` logger hierarchy.

    Args:
        level: debug, info, warning or error
        fmt: "json" emits the raw message (event lines are already JSON),
            "text" prefixes level and logger name
    """
    root = logging.getLogger("stackgen")
    root.setLevel(_LEVELS.get(level, logging.INFO))

    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        root.addHandler(handler)

    for handler in root.handlers:
        if fmt == "json":
            handler.setFormatter(logging.Formatter("%(message)s"))
        else:
            handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))


class GenerationLogger:
    """
    Structured logger for generation run events.

    Each entry includes standard fields for filtering:
    - artifact type and project directory
    - event type and event-specific attributes
    """

    def __init__(
        self,
        artifact: str,
        project: Optional[str] = None,
        extra_labels: Optional[Dict[str, str]] = None,
    ):
        """
        Initialize the run logger.

        Args:
            artifact: Artifact type being generated (devcontainer, docker-compose)
            project: Project directory the run operates on
            extra_labels: Additional labels attached to every entry
        """
        self.artifact = artifact
        self.project = project
        self.extra_labels = extra_labels or {}
        self._logger = _event_logger

    def _emit(self, event: str, level: str = "info", **extra_fields: Any) -> None:
        entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": level,
            "event": event,
            "artifact": self.artifact,
        }
        if self.project:
            entry["project"] = self.project

        entry.update(extra_fields)

        if self.extra_labels:
            entry["labels"] = self.extra_labels

        log_line = json.dumps(entry, default=str)

        if level == "error":
            self._logger.error(log_line)
        elif level == "warn":
            self._logger.warning(log_line)
        else:
            self._logger.info(log_line)

    def log_started(self, session: str, manifest_count: int) -> None:
        """Log the start of a run once collaborators have been consulted."""
        self._emit("generation.started", session=session, manifest_count=manifest_count)

    def log_completed(self, path: str, **details: Any) -> None:
        """Log a successful run and where the artifact was written."""
        self._emit("generation.completed", path=path, **details)

    def log_failed(self, error: BaseException, stage: str) -> None:
        """Log a failed run with the stage that aborted it."""
        self._emit(
            "generation.failed",
            level="error",
            stage=stage,
            error_type=type(error).__name__,
            category=getattr(error, "category", None),
            error=str(error),
        )

    def log_secrets_missing(self, missing: Iterable[str]) -> None:
        """Log the names of required secrets that are not configured."""
        self._emit("secrets.missing", level="warn", missing=sorted(missing))
