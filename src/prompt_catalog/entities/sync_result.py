"""Sync result domain entity."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class SyncResult:
    """Outcome of one synchronization attempt. Never persisted."""

    success: bool
    prompt_count: int
    category_count: int
    sync_time: datetime
    error: str | None = None
