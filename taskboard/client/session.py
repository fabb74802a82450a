"""HTTP + Socket.IO session against a taskboard server.

The session keeps a :class:`~taskboard.client.store.TaskStore` current: it
fetches the user's tasks and notifications over HTTP and applies the pushed
``task:*`` / ``notification:new`` events as they arrive. Both run at the same
time; the store resolves the overlap.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
import socketio

from taskboard.realtime.events import NOTIFICATION_NEW
from taskboard.realtime.events import TASK_ASSIGNED
from taskboard.realtime.events import TASK_DELETED
from taskboard.realtime.events import TASK_UPDATED

from .store import TaskStore

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"
ACCESS_COOKIE = "access_token"


class TaskboardClientError(Exception):
    """A request to the taskboard API failed."""

    def __init__(self, status_code: int, message: str):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict):
        for key in ("detail", "error", "message"):
            if body.get(key):
                return str(body[key])
        # Field errors: {"email": ["User already exists"]}
        for value in body.values():
            if isinstance(value, list) and value:
                return str(value[0])
    return str(body)


class TaskboardClient:
    """Signed-in view of one user's tasks and notifications.

    Usage::

        with TaskboardClient("http://localhost:8000") as client:
            client.login("ada@example.com", "secret")
            client.connect()
            client.sync()
            client.store.tasks()
    """

    def __init__(
        self,
        base_url: str,
        *,
        socketio_path: str = "ws/socket.io",
        timeout: float = 10.0,
        http_client: httpx.Client | None = None,
        sio_client: socketio.Client | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.socketio_path = socketio_path
        self._http = http_client or httpx.Client(base_url=self.base_url, timeout=timeout)
        self._sio = sio_client or socketio.Client(reconnection=True)
        self.store = TaskStore()
        self.user: dict[str, Any] | None = None
        self._connected_once = False
        self._register_handlers()

    # -- http -------------------------------------------------------------

    def _request(self, method: str, path: str, **kwargs) -> Any:
        response = self._http.request(method, f"{API_PREFIX}{path}", **kwargs)
        if response.is_error:
            message = _error_message(response)
            logger.warning("%s %s failed: %s", method, path, message)
            raise TaskboardClientError(response.status_code, message)
        if not response.content:
            return None
        return response.json()

    def _signed_in(self, user: dict[str, Any]) -> dict[str, Any]:
        self.user = user
        self.store.user_id = int(user["id"])
        return user

    def signup(self, name: str, email: str, password: str) -> dict[str, Any]:
        data = self._request(
            "POST",
            "/auth/signup/",
            json={"name": name, "email": email, "password": password},
        )
        return self._signed_in(data["user"])

    def login(self, email: str, password: str) -> dict[str, Any]:
        data = self._request(
            "POST", "/auth/login/", json={"email": email, "password": password}
        )
        return self._signed_in(data["user"])

    def refresh(self) -> None:
        """Rotate the access cookie using the refresh cookie."""
        self._request("POST", "/auth/jwt/refresh/", json={})

    def logout(self) -> None:
        self.disconnect()
        self._request("POST", "/auth/logout/", json={})
        self.user = None

    @property
    def access_token(self) -> str | None:
        return self._http.cookies.get(ACCESS_COOKIE)

    # -- sync -------------------------------------------------------------

    def sync(self) -> None:
        """Fetch tasks and notifications and merge them into the store."""
        token = self.store.begin_fetch()
        groups = self._request("GET", "/tasks/me/")
        notifications = self._request("GET", "/notifications/")
        self.store.apply_snapshot(
            token,
            assigned=groups.get("assigned_to_me", []),
            created=groups.get("created_by_me", []),
        )
        self.store.apply_notifications_snapshot(token, notifications)
        logger.debug(
            "Synced %d tasks, %d notifications",
            len(self.store.tasks()),
            len(self.store.notifications()),
        )

    def overdue(self) -> list[dict[str, Any]]:
        return self._request("GET", "/tasks/me/").get("overdue", [])

    def users(self) -> list[dict[str, Any]]:
        return self._request("GET", "/users/")

    # -- realtime ---------------------------------------------------------

    def _register_handlers(self) -> None:
        self._sio.on("connect", self._on_connect)
        self._sio.on("disconnect", self._on_disconnect)
        self._sio.on("connect_error", self._on_connect_error)
        self._sio.on(TASK_ASSIGNED, self._on_task_assigned)
        self._sio.on(TASK_UPDATED, self.store.on_task_updated)
        self._sio.on(TASK_DELETED, self.store.on_task_deleted)
        self._sio.on(NOTIFICATION_NEW, self._on_notification_new)

    def connect(self, *, wait: bool = True) -> None:
        token = self.access_token
        if not token:
            msg = "Not signed in"
            raise TaskboardClientError(401, msg)
        self._sio.connect(
            self.base_url,
            socketio_path=self.socketio_path,
            auth={"token": token},
            wait=wait,
        )

    def disconnect(self) -> None:
        if self._sio.connected:
            self._sio.disconnect()

    def _on_connect(self) -> None:
        logger.info("Connected to realtime channel")
        if self._connected_once:
            # Events sent while offline are gone; catch up from the API.
            try:
                self.sync()
            except (TaskboardClientError, httpx.HTTPError):
                logger.exception("Resync after reconnect failed")
        self._connected_once = True

    def _on_disconnect(self, *args) -> None:
        logger.info("Disconnected from realtime channel")

    def _on_connect_error(self, data=None) -> None:
        logger.warning("Realtime connection refused: %s", data)

    def _on_task_assigned(self, task: dict[str, Any]) -> None:
        if self.store.on_task_assigned(task):
            logger.info('New task assigned: "%s"', task.get("title"))

    def _on_notification_new(self, notification: dict[str, Any]) -> None:
        if self.store.on_notification_new(notification):
            logger.info("%s", notification.get("message"))

    # -- mutations --------------------------------------------------------

    def create_task(self, **fields) -> dict[str, Any]:
        task = self._request("POST", "/tasks/", json=fields)
        self.store.upsert_task(task)
        return task

    def update_task(self, task_id: int, **fields) -> dict[str, Any]:
        task = self._request("PATCH", f"/tasks/{int(task_id)}/", json=fields)
        self.store.upsert_task(task)
        return task

    def delete_task(self, task_id: int) -> None:
        self._request("DELETE", f"/tasks/{int(task_id)}/")
        self.store.remove_task(task_id)

    def mark_notification_read(self, notification_id: int) -> None:
        self._request("POST", f"/notifications/{int(notification_id)}/mark-read/")
        self.store.mark_read(notification_id)

    def mark_all_notifications_read(self) -> None:
        self._request("POST", "/notifications/mark-all-read/")
        self.store.mark_all_read()

    # -- lifecycle --------------------------------------------------------

    def close(self) -> None:
        self.disconnect()
        self._http.close()

    def __enter__(self) -> TaskboardClient:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
