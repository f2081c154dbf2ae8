"""
Value types for logical coordinates and pixel sizes

=============================================================================
COORDINATE SYSTEM
=============================================================================

Logical coordinates address grid cells, not pixels:

         Y (rows)
         ^
        /
       /
      +-------> X (columns)
      |
      v
      Z (vertical layer index, stacking floors/roofs)

- X, Y: the ground plane, in tiles
- Z: discrete height level (0 = ground)

A Space projects these to screen pixels. Vector3 itself knows nothing about
tiles or pixels.

=============================================================================
"""

import math
from dataclasses import dataclass, replace
from typing import Any, Dict, Mapping, Optional


@dataclass(frozen=True)
class Vector3:
    """
    Logical grid coordinate (x, y, z).

    Immutable: accumulation code builds new values (with_z()) instead of
    mutating in place, so a coordinate attached to a node never changes
    behind its back.
    """
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def with_z(self, z: float) -> 'Vector3':
        return replace(self, z=z)

    def as_tuple(self):
        return (self.x, self.y, self.z)

    # -----------------------------------------------------------------
    # DICTIONARY REPRESENTATION
    # -----------------------------------------------------------------

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "z": self.z}

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> Optional['Vector3']:
        """
        Build a vector from {"x": .., "y": .., "z": ..}.

        Returns None if the mapping is missing, lacks a component, or holds a
        non-numeric or non-finite value (booleans are rejected too).
        """
        if data is None:
            return None
        values = []
        for key in ("x", "y", "z"):
            value = data.get(key)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                return None
            if not math.isfinite(value):
                return None
            values.append(float(value))
        return cls(*values)


Vector3.ZERO = Vector3(0.0, 0.0, 0.0)


@dataclass(frozen=True)
class Size:
    """Width/height pair in pixels."""
    width: float
    height: float
