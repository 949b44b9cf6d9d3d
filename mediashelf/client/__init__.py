"""Client-side helpers for consuming the MediaShelf API."""

from mediashelf.client.synchronizer import MutationResult, ToWatchSynchronizer  # noqa: F401
