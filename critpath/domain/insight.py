from datetime import datetime
from typing import NamedTuple


class TaskInsight(NamedTuple):
    """Computed schedule facts for a single task."""

    earliest_start: datetime
    is_critical: bool

    def to_dict(self):
        return {
            "earliestStart": self.earliest_start.isoformat(),
            "isCritical": self.is_critical,
        }
