"""Error taxonomy and per-session error log for the picker core.

Only configuration write failures interrupt the user. Everything else is
recovered where it happens and recorded here so a host can inspect what went
missing from a session:

- SourceUnavailableError: a collector could not read its directory or registry
- StaleEntryError: a path vanished between enumeration and metadata lookup
- ConfigurationUnreadableError: persisted flags missing or malformed
- ConfigurationWriteError: persisted flags could not be written
"""

from collections import Counter, deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from loguru import logger


class QuickOpenError(Exception):
    """Base class for picker errors."""


class SourceUnavailableError(QuickOpenError):
    """A candidate source could not be read."""

    def __init__(self, source: str, reason: str):
        super().__init__(f"{source}: {reason}")
        self.source = source
        self.reason = reason


class StaleEntryError(QuickOpenError):
    """A path disappeared before its metadata could be resolved."""

    def __init__(self, path: str, reason: str = "vanished"):
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class ConfigurationUnreadableError(QuickOpenError):
    """Persisted configuration is missing or malformed."""


class ConfigurationWriteError(QuickOpenError):
    """Persisted configuration could not be written."""


class ErrorSeverity(Enum):
    """Error severity levels."""
    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4


@dataclass
class ErrorEvent:
    """A recovered error."""
    timestamp: datetime
    source: str
    error_type: str
    message: str
    severity: ErrorSeverity
    context: Dict[str, Any] = field(default_factory=dict)


def classify_severity(error: BaseException) -> ErrorSeverity:
    """Classify error severity."""
    if isinstance(error, ConfigurationWriteError):
        return ErrorSeverity.HIGH
    elif isinstance(error, (SourceUnavailableError, PermissionError)):
        return ErrorSeverity.MEDIUM
    else:
        return ErrorSeverity.LOW


class ErrorLog:
    """Bounded log of recovered errors for one session."""

    def __init__(self, window_size: int = 500):
        """
        Initialize error log.

        Args:
            window_size: Number of error events to keep
        """
        self.window_size = window_size
        self.events: deque = deque(maxlen=window_size)
        self.counts: Counter = Counter()

    def record(self,
               source: str,
               error: BaseException,
               **context: Any) -> ErrorEvent:
        """Record an error raised while handling `source`."""
        event = ErrorEvent(
            timestamp=datetime.now(),
            source=source,
            error_type=type(error).__name__,
            message=str(error),
            severity=classify_severity(error),
            context=context
        )
        self.events.append(event)
        self.counts[f"{source}:{event.error_type}"] += 1
        return event

    def extend(self, other: "ErrorLog") -> None:
        """Append the events of another log, e.g. one per collector task."""
        for event in other.events:
            self.events.append(event)
            self.counts[f"{event.source}:{event.error_type}"] += 1

    def by_type(self, error_type: str) -> List[ErrorEvent]:
        return [e for e in self.events if e.error_type == error_type]

    def __len__(self) -> int:
        return len(self.events)

    def __iter__(self):
        return iter(self.events)

    def summary(self) -> Dict[str, Any]:
        """Get error summary."""
        by_severity = Counter(e.severity.name.lower() for e in self.events)
        return {
            'total_errors': len(self.events),
            'by_severity': dict(by_severity),
            'top_errors': [
                {'error': k, 'count': v} for k, v in self.counts.most_common(5)
            ]
        }

    def last(self) -> Optional[ErrorEvent]:
        return self.events[-1] if self.events else None


def record_recovered(errors: Optional[ErrorLog],
                     source: str,
                     error: BaseException,
                     **context: Any) -> None:
    """Log a recovered error and add it to `errors` when one is given."""
    if isinstance(error, StaleEntryError):
        logger.debug(f"Dropping stale entry {error.path}: {error.reason}")
    else:
        logger.info(f"Source {source} unavailable: {error}")
    if errors is not None:
        errors.record(source, error, **context)
