"""Asset store adapters - Binary asset storage implementations."""

from .local import LocalAssetStore

__all__ = ["LocalAssetStore"]
