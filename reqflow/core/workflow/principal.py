"""Identity of the actor performing a workflow operation."""

from dataclasses import dataclass

from .errors import InvalidInput
from .states import Role


@dataclass(frozen=True)
class Principal:
    """An already-authenticated user id and role."""

    id: int
    role: Role

    @classmethod
    def from_claims(cls, user_id, role: str) -> "Principal":
        """Build a principal from untrusted claim values."""
        try:
            return cls(id=int(user_id), role=Role(str(role).upper()))
        except (TypeError, ValueError):
            raise InvalidInput(f"Invalid principal: id={user_id!r} role={role!r}") from None
