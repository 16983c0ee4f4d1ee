"""
ActivityLog: the user-facing relay log and activity feed.

Both are in-memory, newest first, and rebuilt from scratch every session.
The log is bounded to the most recent MAX_LOG_ENTRIES lines.
"""

from __future__ import annotations

import logging
from collections import deque

from privacy_distro.core.models import ActivityEntry, LogEntry

logger = logging.getLogger("privacy_distro.activity")

MAX_LOG_ENTRIES = 50


class ActivityLog:
    """
    Append-only, bounded record of orchestration events.

    Usage:
        log = ActivityLog()
        log.append("deposit", "Transfer finalized on-chain.")
        log.record("Deposit completed", "Transaction 5x...")
    """

    def __init__(self, max_entries: int = MAX_LOG_ENTRIES) -> None:
        self._entries: deque[LogEntry] = deque(maxlen=max_entries)
        self._activity: deque[ActivityEntry] = deque()

    def append(self, scope: str, message: str) -> LogEntry:
        """Insert a log line at the head, dropping the oldest past the bound."""
        entry = LogEntry(scope=scope, message=message)
        self._entries.appendleft(entry)
        logger.info(f"[{scope}] {message}")
        return entry

    def record(self, headline: str, detail: str) -> ActivityEntry:
        """Add a completed operation to the activity feed."""
        entry = ActivityEntry(headline=headline, detail=detail)
        self._activity.appendleft(entry)
        return entry

    @property
    def entries(self) -> list[LogEntry]:
        """Log lines, newest first."""
        return list(self._entries)

    @property
    def activity(self) -> list[ActivityEntry]:
        """Activity feed, newest first."""
        return list(self._activity)

    def __len__(self) -> int:
        return len(self._entries)
