"""
Console view notifier adapter - Implements ViewNotifier protocol.

This module provides a logging implementation of the domain's view
notifier port. Each logical view key is expanded into the per-locale page
paths it covers and logged, standing in for a cache purge or page
revalidation hook.
"""

import logging
from collections.abc import Sequence

logger = logging.getLogger(__name__)


def view_paths(view_key: str, locales: Sequence[str]) -> list[str]:
    """
    Expand a logical view key into concrete page paths.

    public:events:42 -> /ar/events/42, /en/events/42
    admin:events:42:subscribers -> /ar/dashboard/events/42/subscribers, ...
    """
    scope, _, rest = view_key.partition(":")
    path = rest.replace(":", "/")
    if scope == "admin":
        path = f"dashboard/{path}"
    return [f"/{locale}/{path}" for locale in locales]


class ConsoleViewNotifier:
    """
    Implements ViewNotifier protocol via console logging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, locales: Sequence[str] = ("ar", "en")) -> None:
        self._locales = tuple(locales)

    def notify(self, view_keys: Sequence[str]) -> None:
        """
        Log every stale page path at INFO level.

        Args:
            view_keys: Logical view keys announced by the domain
        """
        for key in view_keys:
            for path in view_paths(key, self._locales):
                logger.info("[REVALIDATE] View: %s Path: %s", key, path)
