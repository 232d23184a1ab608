"""
Exceptions raised by the moderation engine.

All of them are recoverable: callers surface them to the end user (or to the
transport layer) and carry on. Nothing in this package retries on its own.
"""

from __future__ import annotations


class ModerationError(Exception):
    """Base class for failures reported by :class:`GlassModeration`."""


class UserMuted(ModerationError):
    """The user is muted and may not send messages."""

    def __init__(self, message: str = "User is muted") -> None:
        super().__init__(message)


class InappropriateContent(ModerationError):
    """The message was rejected as offensive and severe.

    The warning for the message has already been applied to the record by the
    time this is raised.
    """

    def __init__(self, message: str = "Message is inappropriate") -> None:
        super().__init__(message)


class ClassificationFailed(ModerationError):
    """The classification capability itself failed.

    Kept distinct from :class:`InappropriateContent` so a library failure is
    never held against the user. The original exception is chained as
    ``__cause__``.
    """

    def __init__(self, message: str = "Message could not be classified") -> None:
        super().__init__(message)
