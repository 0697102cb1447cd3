"""Exception and warning types raised across SpendWatch."""

from __future__ import annotations


class SpendWatchError(Exception):
    """Base class for SpendWatch failures."""


class SyncConnectionError(SpendWatchError, ConnectionError):
    """The remote collection could not be subscribed to or stopped streaming.

    Reported to sync observers; never retried automatically.
    """


class InvalidRangeError(SpendWatchError, ValueError):
    """A date selection would leave the range with start after end."""


class CalendarStateError(SpendWatchError, RuntimeError):
    """A picker action was requested in a state that does not allow it."""


class EntryValidationError(SpendWatchError, ValueError):
    """A new expenditure failed entry-time validation."""


class CoercionWarning(UserWarning):
    """A remote field could not be parsed; a safe default was used instead."""
