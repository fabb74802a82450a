"""Domain-specific realtime publishers.

These modules should contain *publish* helpers only (build payload + emit).
They must not define Socket.IO server instances or connection handlers.
"""

TASK_ASSIGNED = "task:assigned"
TASK_UPDATED = "task:updated"
TASK_DELETED = "task:deleted"
NOTIFICATION_NEW = "notification:new"

EVENT_NAMES = (TASK_ASSIGNED, TASK_UPDATED, TASK_DELETED, NOTIFICATION_NEW)
