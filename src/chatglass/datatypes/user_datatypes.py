"""User identity as seen by the moderation engine."""

from __future__ import annotations

from dataclasses import dataclass, field

from chatglass.datatypes.moderation_datatypes import ModerationRecord


@dataclass(slots=True)
class User:
    """A chat user and the moderation record they own.

    Attributes:
        name (str): Display name.
        id (int): Unique identifier.
        glass (ModerationRecord): Moderation state, created fresh with the user.
    """

    name: str
    id: int
    glass: ModerationRecord = field(default_factory=ModerationRecord)

    @classmethod
    def new(cls, name: str, id: int) -> "User":
        """Create a user with a clean moderation record."""
        return cls(name=name, id=id)

    def __hash__(self) -> int:
        return hash(self.id)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, User):
            return NotImplemented
        return self.id == other.id
