"""Global Socket.IO server for task and notification sync.

Every authenticated connection joins exactly one application room, the
per-user room ``user_<id>``. Events aimed at a user are emitted to that room,
so all of the user's open tabs receive them.

Client convention:
- URL base: ws://<host>:8000
- Socket.IO path: settings.SOCKETIO_PATH (``/ws/socket.io/``)
- Auth: the ``access_token`` cookie issued at login, or ``query.token`` /
  ``auth.token`` carrying the same JWT access token.
"""

from __future__ import annotations

import logging
import time
from http.cookies import SimpleCookie
from typing import Any
from urllib.parse import parse_qs

import socketio
from asgiref.sync import async_to_sync
from channels.db import database_sync_to_async
from django.conf import settings
from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import AccessToken
from socketio.exceptions import ConnectionRefusedError  # noqa: A004

logger = logging.getLogger(__name__)


def _client_manager() -> socketio.AsyncManager:
    url = getattr(settings, "SOCKETIO_MESSAGE_QUEUE", "")
    if url:
        return socketio.AsyncRedisManager(url)
    return socketio.AsyncManager()


sio = socketio.AsyncServer(
    async_mode="asgi",
    client_manager=_client_manager(),
    cors_allowed_origins=list(getattr(settings, "CORS_ALLOWED_ORIGINS", [])),
    cors_credentials=True,
    logger=False,
    engineio_logger=False,
)


def room_for_user(user_id: int) -> str:
    return f"user_{int(user_id)}"


@database_sync_to_async
def _get_user_id_from_access_token(token: str) -> int:
    validated = AccessToken(token)
    user = JWTAuthentication().get_user(validated)
    return int(user.id)


def _is_expired(token: str) -> bool:
    # Only called after verification failed; the signature is not trusted here.
    try:
        payload = AccessToken(token, verify=False).payload
    except TokenError:
        return False
    exp = payload.get("exp")
    return isinstance(exp, (int, float)) and exp < time.time()


def _scope_from_environ(environ: dict[str, Any]) -> dict[str, Any]:
    scope: Any = environ
    if isinstance(environ, dict) and "asgi.scope" in environ:
        inner = environ.get("asgi.scope")
        if isinstance(inner, dict):
            scope = inner
    return scope if isinstance(scope, dict) else {}


def _cookie_header(scope: dict[str, Any]) -> str:
    # ASGI scope: headers is a list of (bytes, bytes); WSGI environ: HTTP_COOKIE.
    if "HTTP_COOKIE" in scope:
        return str(scope.get("HTTP_COOKIE") or "")
    for name, value in scope.get("headers") or []:
        if name in (b"cookie", "cookie"):
            if isinstance(value, (bytes, bytearray)):
                return value.decode(errors="ignore")
            return str(value)
    return ""


def _extract_token(environ: dict[str, Any], auth: Any | None) -> str | None:
    """Extract JWT access token from Socket.IO environ/auth.

    Handles python-socketio environ shapes across ASGI/WSGI servers.
    """

    scope = _scope_from_environ(environ)

    query_string: str | bytes = ""
    if "query_string" in scope:
        query_string = scope.get("query_string", b"")
    elif "QUERY_STRING" in scope:
        query_string = scope.get("QUERY_STRING", "")

    if isinstance(query_string, (bytes, bytearray)):
        query_string = query_string.decode(errors="ignore")

    token = parse_qs(str(query_string)).get("token", [None])[0]
    if isinstance(token, str) and token:
        return token

    if isinstance(auth, dict):
        auth_token = auth.get("token")
        if isinstance(auth_token, str) and auth_token:
            return auth_token

    # Browsers send the HttpOnly login cookie with the handshake request.
    raw_cookies = _cookie_header(scope)
    if raw_cookies:
        cookies = SimpleCookie()
        cookies.load(raw_cookies)
        cookie_name = getattr(settings, "JWT_AUTH_COOKIE", "access_token")
        morsel = cookies.get(cookie_name)
        if morsel is not None and morsel.value:
            return morsel.value

    return None


@sio.event
async def connect(sid: str, environ: dict[str, Any], auth: Any | None = None):
    token = _extract_token(environ, auth)
    if not token:
        msg = "unauthorized"
        raise ConnectionRefusedError(msg)

    try:
        user_id = await _get_user_id_from_access_token(token)
    except TokenError as exc:
        # Clients expect this exact string to trigger a refresh.
        msg = "jwt_expired" if _is_expired(token) else "unauthorized"
        raise ConnectionRefusedError(msg) from exc
    except AuthenticationFailed as exc:  # user not found / inactive, etc.
        msg = "unauthorized"
        raise ConnectionRefusedError(msg) from exc
    except Exception as exc:
        logger.exception("Socket.IO connect error")
        msg = "server_error"
        raise ConnectionRefusedError(msg) from exc

    await sio.save_session(sid, {"user_id": user_id})
    await sio.enter_room(sid, room_for_user(user_id))
    logger.info("User connected: %s (sid=%s)", user_id, sid)


@sio.event
async def disconnect(sid: str, *args: Any):
    # Rooms/session are cleaned up automatically.
    session = await sio.get_session(sid)
    user_id = session.get("user_id") if isinstance(session, dict) else None
    logger.info("User disconnected: %s (sid=%s)", user_id, sid)


def emit_event_to_room(room: str, event: str, payload: dict[str, Any]) -> None:
    """Emit an event to a room from sync Django code.

    If nobody is connected this is effectively a no-op. Delivery failures are
    logged and swallowed: a committed mutation must not turn into a 500
    because a socket push failed.
    """

    try:
        async_to_sync(sio.emit)(event, payload, room=room)
    except Exception:
        logger.exception("Failed to emit %s to %s", event, room)
        return
    logger.debug("Emitted %s to %s", event, room)


def emit_event_to_user(user_id: int, event: str, payload: dict[str, Any]) -> None:
    emit_event_to_room(room_for_user(user_id), event, payload)
