"""Filtering and sorting of an already-fetched task list."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from .store import parse_timestamp

ALL = "all"

PRIORITY_ORDER = {"URGENT": 4, "HIGH": 3, "MEDIUM": 2, "LOW": 1}
SORT_FIELDS = ("due_date", "priority", "created_at")
SORT_ORDERS = ("asc", "desc")

_WHITESPACE = re.compile(r"\s+")


def _normalize(value: str) -> str:
    return _WHITESPACE.sub("_", str(value).strip()).upper()


@dataclass(frozen=True)
class TaskFilters:
    status: str = ALL
    priority: str = ALL
    sort_by: str = "due_date"
    sort_order: str = "asc"

    def __post_init__(self):
        if self.sort_by not in SORT_FIELDS:
            msg = f"sort_by must be one of {SORT_FIELDS}, got {self.sort_by!r}"
            raise ValueError(msg)
        if self.sort_order not in SORT_ORDERS:
            msg = f"sort_order must be one of {SORT_ORDERS}, got {self.sort_order!r}"
            raise ValueError(msg)


def _sort_key(sort_by: str):
    # Under "asc": earliest due date first, most urgent first, newest first.
    if sort_by == "due_date":
        return lambda task: parse_timestamp(task.get("due_date"))
    if sort_by == "priority":
        return lambda task: -PRIORITY_ORDER.get(_normalize(task.get("priority", "")), 0)
    return lambda task: -parse_timestamp(task.get("created_at")).timestamp()


def filter_tasks(
    tasks: Iterable[dict[str, Any]], filters: TaskFilters | None = None
) -> list[dict[str, Any]]:
    """Return a new filtered and sorted list; ``tasks`` is left untouched."""
    filters = filters or TaskFilters()
    result = list(tasks)

    if filters.status.lower() != ALL:
        wanted = _normalize(filters.status)
        result = [t for t in result if _normalize(t.get("status") or "") == wanted]

    if filters.priority.lower() != ALL:
        wanted = _normalize(filters.priority)
        result = [t for t in result if _normalize(t.get("priority") or "") == wanted]

    # sorted() is stable for reverse=True too, so ties keep their input order.
    return sorted(
        result,
        key=_sort_key(filters.sort_by),
        reverse=filters.sort_order == "desc",
    )
