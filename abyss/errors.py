"""Error taxonomy of the capacity alert engine.

Every failure is contained: remote and arithmetic errors end one asset's
cycle for one tick, delivery errors end one notification. None of them
stops the poller.
"""


class AbyssError(Exception):
    """Base class for engine errors."""


class RemoteNotFound(AbyssError):
    """A vault or pool object is absent, or the read for it failed."""


class RemoteMalformed(AbyssError):
    """An object was returned but its JSON does not have the expected shape."""


class DivisionByZero(AbyssError, ZeroDivisionError):
    """The pool has zero supply shares, so no exchange rate exists."""


class UnknownUser(AbyssError):
    """A store operation referenced a user that was never registered."""

    def __init__(self, user_id: int):
        super().__init__(f"Unknown user: {user_id}")
        self.user_id = user_id


class UnknownAsset(AbyssError, ValueError):
    """The symbol is not one of the tracked assets."""


class DeliveryFailure(AbyssError):
    """The notification transport failed for one alert."""
