"""Domain errors raised while reconciling a user's library.

Every error carries the message shown to the user. The library boundary turns
these into ``ActionResult(error=...)`` values, so none of them reach a route.
"""

from __future__ import annotations


class LuneError(Exception):
    """Base class for library errors with a user-facing message."""

    default_message = "Something went wrong."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class AuthenticationError(LuneError):
    """No authenticated identity was supplied."""

    default_message = "You must be logged in."


class ValidationError(LuneError):
    """A required identity field is missing or malformed."""

    default_message = "Invalid request."


class CatalogWriteError(LuneError):
    """The catalog upsert failed; the library was not touched."""

    default_message = "Failed to save media details."


class StorageError(LuneError):
    """A library read or write failed for a reason other than "not found"."""

    default_message = "Database error."
