"""Log event types for structured logging."""

from enum import StrEnum


class LogEvent(StrEnum):
    """Log event types for podagent.

    Used with logger.info/warning/error extra dict:
        logger.info("message", extra={"event": LogEvent.WATCH_STARTED, ...})
    """

    # Application lifecycle
    APP_STARTED = "app_started"
    APP_STOPPED = "app_stopped"

    # Instance stats
    STATS_FETCHED = "stats_fetched"
    INSTANCE_SKIPPED = "instance_skipped"
    LIST_FAILED = "list_failed"

    # Termination watch
    WATCH_STARTED = "watch_started"
    INSTANCE_DELETED = "instance_deleted"
    INSTANCE_APPEARED = "instance_appeared"
    TERMINATION_OBSERVED = "termination_observed"
    WATCH_CANCELLED = "watch_cancelled"
    WATCH_FAILED = "watch_failed"

    # Authentication
    AUTH_FAILED = "auth_failed"
    IDENTITY_RESOLVED = "identity_resolved"

    # Error events
    UNHANDLED_EXCEPTION = "unhandled_exception"
    AGENT_ERROR = "agent_error"
