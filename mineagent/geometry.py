"""Block coordinates and cardinal directions.

Axis convention: +x east, +y up, +z south. Horizontal rotation helpers
treat north as the reference heading.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional, Tuple


class Direction(Enum):
    NORTH = (0, 0, -1)
    EAST = (1, 0, 0)
    SOUTH = (0, 0, 1)
    WEST = (-1, 0, 0)
    UP = (0, 1, 0)
    DOWN = (0, -1, 0)

    @property
    def dx(self) -> int:
        return self.value[0]

    @property
    def dy(self) -> int:
        return self.value[1]

    @property
    def dz(self) -> int:
        return self.value[2]

    @property
    def is_horizontal(self) -> bool:
        return self.dy == 0

    @property
    def label(self) -> str:
        return self.name.lower()

    def clockwise(self) -> "Direction":
        """Rotate 90° clockwise seen from above (north → east)."""
        return _CLOCKWISE[self._require_horizontal()]

    def counter_clockwise(self) -> "Direction":
        return _COUNTER_CLOCKWISE[self._require_horizontal()]

    def opposite(self) -> "Direction":
        return _OPPOSITE[self]

    def _require_horizontal(self) -> "Direction":
        if not self.is_horizontal:
            raise ValueError(f"{self.label} has no horizontal rotation")
        return self

    @classmethod
    def horizontal(cls) -> Tuple["Direction", ...]:
        return (cls.NORTH, cls.EAST, cls.SOUTH, cls.WEST)

    @classmethod
    def from_name(cls, name: Optional[str]) -> Optional["Direction"]:
        """Parse ``north``/``n`` style names; ``None`` for unknown input."""
        if not name:
            return None
        key = name.strip().lower()
        for direction in cls:
            if key in (direction.label, direction.label[0]):
                return direction
        return None


_CLOCKWISE = {
    Direction.NORTH: Direction.EAST,
    Direction.EAST: Direction.SOUTH,
    Direction.SOUTH: Direction.WEST,
    Direction.WEST: Direction.NORTH,
}
_COUNTER_CLOCKWISE = {v: k for k, v in _CLOCKWISE.items()}
_OPPOSITE = {
    Direction.NORTH: Direction.SOUTH,
    Direction.SOUTH: Direction.NORTH,
    Direction.EAST: Direction.WEST,
    Direction.WEST: Direction.EAST,
    Direction.UP: Direction.DOWN,
    Direction.DOWN: Direction.UP,
}


@dataclass(frozen=True, order=True)
class BlockPos:
    """Immutable integer block coordinate."""
    x: int
    y: int
    z: int

    def offset(self, dx: int = 0, dy: int = 0, dz: int = 0) -> "BlockPos":
        return BlockPos(self.x + dx, self.y + dy, self.z + dz)

    def relative(self, direction: Direction, distance: int = 1) -> "BlockPos":
        """Step ``distance`` blocks along ``direction`` (negative walks backwards)."""
        return BlockPos(
            self.x + direction.dx * distance,
            self.y + direction.dy * distance,
            self.z + direction.dz * distance,
        )

    def above(self, n: int = 1) -> "BlockPos":
        return self.offset(dy=n)

    def below(self, n: int = 1) -> "BlockPos":
        return self.offset(dy=-n)

    def at_y(self, y: int) -> "BlockPos":
        return BlockPos(self.x, y, self.z)

    def dist_sqr(self, other: "BlockPos") -> int:
        dx = self.x - other.x
        dy = self.y - other.y
        dz = self.z - other.z
        return dx * dx + dy * dy + dz * dz

    def neighbors(self) -> Iterator["BlockPos"]:
        """The six face-adjacent positions."""
        for direction in Direction:
            yield self.relative(direction)

    def to_key(self) -> str:
        return f"{self.x},{self.y},{self.z}"

    @classmethod
    def parse(cls, text: str) -> Optional["BlockPos"]:
        """Parse ``"x,y,z"``; ``None`` when malformed."""
        parts = [p.strip() for p in str(text).split(",")]
        if len(parts) != 3:
            return None
        try:
            return cls(int(parts[0]), int(parts[1]), int(parts[2]))
        except ValueError:
            return None

    def __str__(self) -> str:
        return f"({self.x}, {self.y}, {self.z})"
