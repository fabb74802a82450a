"""In-memory task/notification cache fed by REST snapshots and socket events.

Socket events and REST fetches race: an event can arrive while a snapshot
request is in flight, and the snapshot may then carry an older copy of the
same task (or a task the event just deleted). Every state change therefore
records the sequence number of the event that caused it. A snapshot is
tagged with the sequence number current when its request was started
(``begin_fetch``), and anything an event touched after that point wins over
the snapshot.

Entities are plain dicts as rendered by the API. Tasks are keyed by ``id``
and versioned by ``updated_at``; notifications are keyed by ``id`` and are
immutable apart from ``is_read``.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from collections.abc import Iterable
from datetime import datetime
from datetime import timezone
from itertools import chain
from typing import Any

from taskboard.realtime.events import NOTIFICATION_NEW
from taskboard.realtime.events import TASK_ASSIGNED
from taskboard.realtime.events import TASK_DELETED
from taskboard.realtime.events import TASK_UPDATED

logger = logging.getLogger(__name__)

Entity = dict[str, Any]
Listener = Callable[[str, Entity], None]

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def parse_timestamp(value: Any) -> datetime:
    """Parse an API timestamp; missing or malformed values sort first."""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if not value:
        return _EPOCH
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return _EPOCH
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def _is_older(candidate: Entity, current: Entity) -> bool:
    return parse_timestamp(candidate.get("updated_at")) < parse_timestamp(
        current.get("updated_at")
    )


def _newest_first(item: Entity) -> tuple[datetime, int]:
    return (parse_timestamp(item.get("created_at")), int(item.get("id") or 0))


class TaskStore:
    """Client-side reconciler for the task and notification lists.

    ``user_id`` is the signed-in user; it decides whether a task pushed via
    ``task:updated`` belongs in this user's list. All public methods are
    thread-safe (socket callbacks run on the socket client's thread).
    """

    def __init__(self, user_id: int | None = None):
        self.user_id = user_id
        self._lock = threading.RLock()
        self._seq = 0
        self._tasks: dict[int, Entity] = {}
        self._notifications: dict[int, Entity] = {}
        # id -> sequence number of the last event that changed the entry
        self._task_touched: dict[int, int] = {}
        self._notification_touched: dict[int, int] = {}
        # deleted for good; ids are never reused by the server
        self._task_tombstones: dict[int, int] = {}
        self._notification_tombstones: dict[int, int] = {}
        # dropped from this user's view but may come back (reassignment)
        # id -> (sequence number, updated_at of the copy that removed it)
        self._task_departed: dict[int, tuple[int, datetime]] = {}
        self._listeners: list[Listener] = []

    # -- plumbing ---------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener(event, payload)`` after each applied event.

        Returns a function that removes the listener.
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, event: str, payload: Entity) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(event, payload)
            except Exception:
                logger.exception("Store listener failed for %s", event)

    def _next_seq(self) -> int:
        self._seq += 1
        return self._seq

    def _is_participant(self, task: Entity) -> bool | None:
        if self.user_id is None:
            return None
        return self.user_id in (task.get("creator_id"), task.get("assigned_to_id"))

    # -- fetch protocol ---------------------------------------------------

    def begin_fetch(self) -> int:
        """Token to pass to ``apply_snapshot`` once the fetch completes."""
        with self._lock:
            return self._seq

    def apply_snapshot(
        self,
        token: int,
        assigned: Iterable[Entity] = (),
        created: Iterable[Entity] = (),
    ) -> None:
        """Replace the task list with a REST snapshot started at ``token``.

        ``assigned`` and ``created`` may overlap (self-assigned tasks); the
        result holds one entry per id.
        """
        incoming: dict[int, Entity] = {}
        for task in chain(assigned, created):
            incoming[int(task["id"])] = dict(task)

        with self._lock:
            merged: dict[int, Entity] = {}
            for task_id, task in incoming.items():
                if task_id in self._task_tombstones:
                    continue
                departed = self._task_departed.get(task_id)
                if departed is not None:
                    departed_seq, departed_at = departed
                    # Left this user's view after the request started.
                    if departed_seq > token and (
                        parse_timestamp(task.get("updated_at")) <= departed_at
                    ):
                        continue
                current = self._tasks.get(task_id)
                if current is not None and _is_older(task, current):
                    merged[task_id] = current
                else:
                    merged[task_id] = task
            for task_id, current in self._tasks.items():
                if task_id in merged:
                    continue
                # Arrived by event after the request started; the snapshot
                # simply predates it.
                if self._task_touched.get(task_id, -1) > token:
                    merged[task_id] = current
            self._tasks = merged
            self._task_departed = {
                tid: departed
                for tid, departed in self._task_departed.items()
                if departed[0] > token
            }

    def apply_notifications_snapshot(
        self, token: int, notifications: Iterable[Entity]
    ) -> None:
        incoming = {int(n["id"]): dict(n) for n in notifications}
        with self._lock:
            merged: dict[int, Entity] = {}
            for notification_id, notification in incoming.items():
                if notification_id in self._notification_tombstones:
                    continue
                if int(notification.get("task_id") or 0) in self._task_tombstones:
                    continue
                current = self._notifications.get(notification_id)
                if (
                    current is not None
                    and self._notification_touched.get(notification_id, -1) > token
                ):
                    # Read state flipped locally after the request started.
                    merged[notification_id] = current
                else:
                    merged[notification_id] = notification
            for notification_id, current in self._notifications.items():
                if notification_id in merged:
                    continue
                if self._notification_touched.get(notification_id, -1) > token:
                    merged[notification_id] = current
            self._notifications = merged

    # -- task events ------------------------------------------------------

    def _upsert(self, task: Entity, *, insert_unknown: bool) -> bool:
        task_id = int(task["id"])
        if task_id in self._task_tombstones:
            return False
        current = self._tasks.get(task_id)
        participant = self._is_participant(task)

        if participant is False:
            # Reassigned away from this user: drop it from the view, and keep
            # a snapshot already in flight from bringing it back.
            if current is not None and _is_older(task, current):
                return False
            seq = self._next_seq()
            self._task_touched[task_id] = seq
            left_at = parse_timestamp(task.get("updated_at"))
            self._task_departed[task_id] = (seq, left_at)
            if current is None:
                return False
            del self._tasks[task_id]
            return True

        if current is None:
            if not insert_unknown:
                return False
        elif _is_older(task, current):
            return False
        elif current == task:
            return False

        seq = self._next_seq()
        self._tasks[task_id] = dict(task)
        self._task_touched[task_id] = seq
        self._task_departed.pop(task_id, None)
        return True

    def on_task_assigned(self, task: Entity) -> bool:
        """``task:assigned``: add the task unless it is already cached."""
        with self._lock:
            changed = self._upsert(task, insert_unknown=True)
        if changed:
            self._notify(TASK_ASSIGNED, task)
        return changed

    def on_task_updated(self, task: Entity) -> bool:
        """``task:updated``: refresh a cached task.

        An unknown task is added only when the signed-in user is its creator
        or assignee, e.g. it was created from another tab.
        """
        with self._lock:
            insert_unknown = self._is_participant(task) is True
            changed = self._upsert(task, insert_unknown=insert_unknown)
        if changed:
            self._notify(TASK_UPDATED, task)
        return changed

    def on_task_deleted(self, payload: Entity) -> bool:
        """``task:deleted``: drop the task and its notifications."""
        task_id = int(payload["task_id"])
        with self._lock:
            seq = self._next_seq()
            self._task_tombstones[task_id] = seq
            self._task_departed.pop(task_id, None)
            removed = self._tasks.pop(task_id, None) is not None
            for notification_id, notification in list(self._notifications.items()):
                if int(notification.get("task_id") or 0) == task_id:
                    del self._notifications[notification_id]
                    self._notification_tombstones[notification_id] = seq
                    removed = True
        if removed:
            self._notify(TASK_DELETED, payload)
        return removed

    # -- notification events ----------------------------------------------

    def on_notification_new(self, notification: Entity) -> bool:
        """``notification:new``: prepend unless already cached."""
        notification_id = int(notification["id"])
        with self._lock:
            if notification_id in self._notifications:
                return False
            if notification_id in self._notification_tombstones:
                return False
            if int(notification.get("task_id") or 0) in self._task_tombstones:
                return False
            self._notifications[notification_id] = dict(notification)
            self._notification_touched[notification_id] = self._next_seq()
        self._notify(NOTIFICATION_NEW, notification)
        return True

    # -- local mutation results -------------------------------------------

    def upsert_task(self, task: Entity) -> bool:
        """Apply a task returned by a create/update request."""
        with self._lock:
            changed = self._upsert(task, insert_unknown=True)
        if changed:
            self._notify(TASK_UPDATED, task)
        return changed

    def remove_task(self, task_id: int) -> bool:
        """Apply a successful delete request."""
        return self.on_task_deleted({"task_id": task_id})

    def mark_read(self, notification_id: int) -> bool:
        with self._lock:
            current = self._notifications.get(int(notification_id))
            if current is None or current.get("is_read"):
                return False
            self._notifications[int(notification_id)] = {**current, "is_read": True}
            self._notification_touched[int(notification_id)] = self._next_seq()
            return True

    def mark_all_read(self) -> int:
        with self._lock:
            unread = [
                notification_id
                for notification_id, current in self._notifications.items()
                if not current.get("is_read")
            ]
            if not unread:
                return 0
            seq = self._next_seq()
            for notification_id in unread:
                current = self._notifications[notification_id]
                self._notifications[notification_id] = {**current, "is_read": True}
                self._notification_touched[notification_id] = seq
            return len(unread)

    # -- queries ----------------------------------------------------------

    def tasks(self) -> list[Entity]:
        """Cached tasks, newest first."""
        with self._lock:
            items = [dict(task) for task in self._tasks.values()]
        return sorted(items, key=_newest_first, reverse=True)

    def notifications(self) -> list[Entity]:
        """Cached notifications, newest first."""
        with self._lock:
            items = [dict(n) for n in self._notifications.values()]
        return sorted(items, key=_newest_first, reverse=True)

    def get_task(self, task_id: int) -> Entity | None:
        with self._lock:
            task = self._tasks.get(int(task_id))
            return dict(task) if task is not None else None

    def unread_count(self) -> int:
        with self._lock:
            return sum(1 for n in self._notifications.values() if not n.get("is_read"))
