"""Exceptions raised at the engine's edit and save boundaries."""


class SizingError(Exception):
    """Base class for engine errors."""


class UnknownPointError(SizingError, LookupError):
    """No measurement point matches the given key or index."""


class UnknownRoundError(SizingError, LookupError):
    """No sample round matches the given key."""


class RoundLockedError(SizingError):
    """An edit addressed a sample round that is no longer the latest one."""

    def __init__(self, round_key: str):
        super().__init__(
            f"Sample round {round_key} is locked; only the latest round can be edited"
        )
        self.round_key = round_key


class SaveInProgressError(SizingError):
    """A mutation was attempted while a save round-trip was in flight."""


class SaveFailedError(SizingError):
    """The persistence collaborator rejected or failed a save."""
