"""
Error taxonomy for activity storage and sync.
Connectivity failures are never raised to callers; they only show up in router state.
"""


class WhatnextError(Exception):
    """Base class for all application errors."""


class DuplicateNameError(WhatnextError):
    def __init__(self, name: str):
        super().__init__(f"Activity '{name}' already exists")
        self.name = name


class ActivityNotFoundError(WhatnextError):
    def __init__(self, name: str):
        super().__init__(f"Activity not found: {name}")
        self.name = name


class InvalidActivityError(WhatnextError):
    """Rejected input, e.g. an empty activity name."""


class StorageError(WhatnextError):
    """Any other transport or storage failure in a store."""


class RemoteUnavailableError(WhatnextError):
    """The remote store cannot be used right now."""


class RemoteNotConfiguredError(RemoteUnavailableError):
    """No remote database connection settings were provided."""


class SyncInProgressError(WhatnextError):
    """Another sync is already running in this process."""
