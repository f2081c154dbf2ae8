"""
Isometric coordinate engine

=============================================================================
DIAMOND PROJECTION
=============================================================================

The diamond (Tiled "isometric") projection rotates the grid 45 degrees and
squashes it vertically. Moving +x goes down-right, moving +y goes down-left:

                 (0,0)
                 /\\
           (0,1)/  \\(1,0)
               /\\  /\\
              /  \\/  \\
        (0,2) \\  /\\  / (2,0)
               \\/  \\/
                  ...

With half tile sizes hw = tw/2 and hh = th/2 (screen Y grows UP):

    sx = (x - y) * hw
    sy = -(x + y) * hh - hh          <- ground plane
    sy += z * th                     <- stack height levels
    sy += (W.y + W.z - 1) * th / 2   <- recenter on the space anchor

The last term depends on the world extent W, so that growing the number of
height levels does not shift already-placed content relative to the anchor.

=============================================================================
PAINT ORDER (painter's algorithm)
=============================================================================

Sprites overlap, so they must be drawn back to front. Every cell is mapped
onto one sortable number:

    index = x + y * W.x + z * W.x * W.y
    key   = index / (W.x * W.y + W.z)

For in-grid coordinates, sorting by key is the same as sorting
lexicographically by (z, y, x): any higher level outranks any row, any later
row outranks any column. Keys are only meaningful for sorting.

Both results depend on W. When W changes after keys were computed, every
cached value in the tree must be recomputed: Space.resize() does that.

=============================================================================
"""

import logging
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

import numpy as np

from .node import Node, NodeKind
from .vector import Size, Vector3

logger = logging.getLogger(__name__)


class SpaceType(Enum):
    """Supported projections. Values are Tiled orientation names."""
    DIAMOND = "isometric"

    @classmethod
    def from_orientation(cls, orientation: str) -> 'SpaceType':
        """
        Map a Tiled `orientation` attribute to a SpaceType.

        Raises:
        -------
        ValueError : for orthogonal, staggered, hexagonal or unknown values
        """
        for member in cls:
            if member.value == orientation:
                return member
        raise ValueError(f"unsupported orientation: {orientation!r}")


class Space(Node):
    """
    Coordinate authority and root of an isometric scene tree.

    A Space is its own enclosing space, so layers and tiles attached
    directly to it resolve their transforms without a separate root.

    Parameters:
    -----------
    tile_size : Size
        Tile footprint in pixels; both sides > 0
    world_size : Vector3
        Grid extent in cells; every component >= 1
    type : SpaceType
        Projection variant (only DIAMOND exists)

    Raises:
    -------
    ValueError : if a size is out of range or the type is not a SpaceType

    ==========================================================================
    USAGE EXAMPLE
    ==========================================================================

    ```python
    space = Space(Size(112, 64), Vector3(2, 2, 2))

    grass = Node("grass", NodeKind.TILE)
    space.attach(grass)
    grass.position      # (0.0, 64.0)

    snow = Node("snow", NodeKind.TILE, coordinates=Vector3(1, 0, 1))
    space.attach(snow)
    snow.z_order        # 5 / 6
    ```

    ==========================================================================
    """

    def __init__(self, tile_size: Size, world_size: Vector3,
                 type: SpaceType = SpaceType.DIAMOND, name: str = "space"):
        if not isinstance(type, SpaceType):
            raise ValueError(f"unsupported space type: {type!r}")
        _check_tile_size(tile_size)
        _check_world_size(world_size)

        super().__init__(name=name, kind=NodeKind.SPACE)
        self.type = type
        self._tile_size = tile_size
        self._world_size = world_size
        self._space = self

    def __repr__(self) -> str:
        ws = self._world_size
        return (f"Space({self.type.name} tile={self._tile_size.width:g}x"
                f"{self._tile_size.height:g} world={ws.x:g}x{ws.y:g}x{ws.z:g})")

    @property
    def tile_size(self) -> Size:
        return self._tile_size

    @property
    def world_size(self) -> Vector3:
        return self._world_size

    @property
    def frame(self) -> Tuple[float, float, float, float]:
        """(x, y, width, height) of the grid footprint, at the space anchor."""
        return (self.position[0], self.position[1],
                self._world_size.x * self._tile_size.width,
                self._world_size.y * self._tile_size.height)

    # -----------------------------------------------------------------
    # DICTIONARY REPRESENTATION
    # -----------------------------------------------------------------
    # Only the coordinate frame is stored; the node tree is rebuilt from
    # the map.

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "tile_size": {"width": self._tile_size.width,
                          "height": self._tile_size.height},
            "world_size": self._world_size.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> Optional['Space']:
        """
        Rebuild an empty Space from to_dict() output.

        Returns None if the mapping is missing, incomplete, or describes a
        space the constructor rejects.
        """
        if data is None:
            return None
        try:
            space_type = SpaceType.from_orientation(data.get("type"))
        except ValueError:
            return None

        tile = data.get("tile_size")
        if not isinstance(tile, Mapping):
            return None
        width, height = tile.get("width"), tile.get("height")
        if not all(isinstance(v, (int, float)) and not isinstance(v, bool)
                   for v in (width, height)):
            return None

        world_size = Vector3.from_dict(data.get("world_size"))
        if world_size is None:
            return None

        try:
            return cls(Size(width, height), world_size, space_type)
        except ValueError:
            return None

    def set_space(self, space):
        # A space always encloses itself, whatever it is attached to
        self._space = self
        for child in self._children:
            child.set_space(self)

    # =========================================================================
    # PROJECTION
    # =========================================================================

    def compute_position(self, coordinates: Vector3) -> Tuple[float, float]:
        """
        Project a logical coordinate to a screen point.

        Parameters:
        -----------
        coordinates : Vector3
            Logical (x, y, z) cell

        Returns:
        --------
        tuple : (screen_x, screen_y), Y up, relative to the space anchor
        """
        if self.type is not SpaceType.DIAMOND:
            raise ValueError(f"no projection for {self.type!r}")

        tw, th = self._tile_size.width, self._tile_size.height
        half_w, half_h = tw / 2, th / 2
        ws = self._world_size

        screen_x = (coordinates.x - coordinates.y) * half_w
        screen_y = -(coordinates.x + coordinates.y) * half_h - half_h
        screen_y += coordinates.z * th
        screen_y += (ws.y + ws.z - 1) * th / 2
        return (screen_x, screen_y)

    def compute_z_order(self, coordinates: Vector3) -> float:
        """
        Paint-order key of a logical coordinate (ascending = drawn first).

        Raises:
        -------
        ValueError : if the world extent gives a non-positive normalizer
        """
        ws = self._world_size
        denominator = ws.x * ws.y + ws.z
        if denominator <= 0:
            raise ValueError(f"cannot normalize paint order for world size {ws}")

        index = (coordinates.x
                 + coordinates.y * ws.x
                 + coordinates.z * ws.x * ws.y)
        return index / denominator

    # -----------------------------------------------------------------
    # VECTORISED FORMS
    # -----------------------------------------------------------------
    # Same formulas over an (N, 3) array of coordinates, used to refresh
    # whole trees at once.

    def compute_positions(self, coordinates) -> np.ndarray:
        """(N, 3) coordinates -> (N, 2) screen points."""
        if self.type is not SpaceType.DIAMOND:
            raise ValueError(f"no projection for {self.type!r}")

        coords = np.asarray(coordinates, dtype=np.float64).reshape(-1, 3)
        tw, th = self._tile_size.width, self._tile_size.height
        ws = self._world_size

        x, y, z = coords[:, 0], coords[:, 1], coords[:, 2]
        result = np.empty((coords.shape[0], 2), dtype=np.float64)
        result[:, 0] = (x - y) * (tw / 2)
        result[:, 1] = (-(x + y) * (th / 2) - th / 2
                        + z * th
                        + (ws.y + ws.z - 1) * th / 2)
        return result

    def compute_z_orders(self, coordinates) -> np.ndarray:
        """(N, 3) coordinates -> (N,) paint-order keys."""
        ws = self._world_size
        denominator = ws.x * ws.y + ws.z
        if denominator <= 0:
            raise ValueError(f"cannot normalize paint order for world size {ws}")

        coords = np.asarray(coordinates, dtype=np.float64).reshape(-1, 3)
        weights = np.array([1.0, ws.x, ws.x * ws.y])
        return coords @ weights / denominator

    # =========================================================================
    # EXTENT CHANGES
    # =========================================================================

    def resize(self, world_size: Vector3):
        """
        Replace the world extent and recompute every cached position and key.

        Raises:
        -------
        ValueError : if a component of world_size is below 1
        """
        _check_world_size(world_size)
        self._world_size = world_size

        nodes = list(self.placeables())
        if not nodes:
            return
        coords = np.array([node.coordinates.as_tuple() for node in nodes],
                          dtype=np.float64)
        positions = self.compute_positions(coords)
        keys = self.compute_z_orders(coords)
        for node, (px, py), key in zip(nodes, positions, keys):
            node.position = (float(px), float(py))
            node.z_order = float(key)
        logger.debug("Resized %r, refreshed %d nodes", self, len(nodes))

    # =========================================================================
    # DRAW ORDER
    # =========================================================================

    def paint_order(self, include_hidden: bool = True) -> List[Node]:
        """
        Placeable nodes sorted back to front.

        Ties (same key) keep tree order, so a later layer paints over an
        earlier one at the same cell.

        Parameters:
        -----------
        include_hidden : bool
            If False, skip nodes below a layer whose `visible` is False
        """
        nodes = [node for node in self.placeables()
                 if include_hidden or _is_shown(node)]
        keys = np.fromiter((node.z_order for node in nodes),
                           dtype=np.float64, count=len(nodes))
        order = np.argsort(keys, kind="stable")
        return [nodes[i] for i in order]


def _is_shown(node: Node) -> bool:
    while node is not None and node.kind is not NodeKind.SPACE:
        if not node.visible:
            return False
        node = node.parent
    return True


def _check_tile_size(tile_size: Size):
    if not (tile_size.width > 0 and tile_size.height > 0):
        raise ValueError(f"tile size must be positive, got {tile_size}")


def _check_world_size(world_size: Vector3):
    if not (world_size.x >= 1 and world_size.y >= 1 and world_size.z >= 1):
        raise ValueError(f"world size components must be >= 1, got {world_size}")
