"""
Error types raised by the store, inventory and gate layers.
"""


class HookError(RuntimeError):
    """Base class for errors surfaced as hook failures."""


class StoreError(HookError):
    """Failure talking to the ClusterUpgrade record store."""


class StoreUnavailable(StoreError):
    """Transport, auth or unexpected API error from the store."""


class AlreadyExists(StoreError):
    """A record with the same name already exists in the namespace."""


class NotFound(StoreError):
    """The record vanished between read and write."""


class InventoryUnavailable(HookError):
    """The machine inventory could not be listed or was empty."""


class ProtocolViolation(HookError):
    """A hook was called without its predecessor step having run."""
