"""Python client for the taskboard API and its realtime channel."""

from .filters import TaskFilters
from .filters import filter_tasks
from .session import TaskboardClient
from .session import TaskboardClientError
from .store import TaskStore

__all__ = [
    "TaskFilters",
    "TaskStore",
    "TaskboardClient",
    "TaskboardClientError",
    "filter_tasks",
]
