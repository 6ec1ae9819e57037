"""View notifier adapters - Stale view announcement implementations."""

from .console import ConsoleViewNotifier

__all__ = ["ConsoleViewNotifier"]
