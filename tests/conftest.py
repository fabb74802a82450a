# Cross-app tests share the app-level fixtures.
from taskboard.conftest import _clear_throttle_cache  # noqa: F401
from taskboard.conftest import emitted  # noqa: F401
