"""
Triggers that keep the published feed in sync with its inputs.

Supported triggers:
- Filesystem watcher: rebuilds the feed whenever a file in the episode
  directory or the podcast configuration file is written.

Configuration via pogo.yaml:
    feed:
      fallback_interval: 300
      rebuild_on_start: true
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass
class TriggerState:
    """
    Represents the current state of a trigger.

    Tracks when a trigger last ran, how many times it has fired, how many
    of those runs failed, and the most recent error.

    Attributes:
        name: Trigger identifier (e.g., "feed_watch")
        last_run: Timestamp of most recent execution
        run_count: Total number of times this trigger has fired
        failure_count: Number of runs that ended in an error
        last_error: Most recent error message, if any
        metadata: Arbitrary key-value pairs for trigger-specific state
    """

    name: str
    last_run: Optional[datetime] = None
    run_count: int = 0
    failure_count: int = 0
    last_error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def record_run(self, error: Optional[str] = None) -> None:
        """
        Record a trigger execution.

        Args:
            error: Error message if the run failed, None for success
        """
        self.last_run = datetime.now()
        self.run_count += 1
        self.last_error = error
        if error:
            self.failure_count += 1


__all__ = [
    "TriggerState",
]
