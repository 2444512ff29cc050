"""Protection ring levels."""

from __future__ import annotations

from enum import IntEnum


class PrivilegeLevel(IntEnum):
    """A protection ring level, from most (0) to least (3) privileged."""

    RING0 = 0
    RING1 = 1
    RING2 = 2
    RING3 = 3

    @classmethod
    def from_u16(cls, value: int) -> PrivilegeLevel:
        """Return the level for `value`, which must lie in 0..4."""
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"{value} is not a valid privilege level") from None