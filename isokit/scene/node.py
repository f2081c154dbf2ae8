"""
Scene tree of placeable entities

=============================================================================
OWNERSHIP MODEL
=============================================================================

Nodes form a tree. Ownership flows DOWN only:

    Space                      <- root, its own enclosing space
    ├── Layer "Ground"         <- positioned by pixel offset
    │   ├── Tile (0,0,0)       <- positioned by the Space projection
    │   └── Tile (1,0,0)
    └── Layer "Roof+2"
        └── Object "chimney"

Upward links (parent, space) are plain back-references. A node is listed in
exactly one parent's children, and attach() refuses to put a node under one
of its own descendants, so the tree can never contain a cycle.

=============================================================================
NODE KINDS
=============================================================================

Instead of subclassing per entity type, every node carries a NodeKind tag:

    SPACE   - the coordinate authority (see space.py)
    LAYER   - tile layer, object group or layer group; a container
    TILE    - one layer cell
    OBJECT  - a tile object placed at a free pixel position

TILE and OBJECT nodes are PLACEABLE: their screen position and paint-order
key are derived from their logical coordinates through the enclosing Space.
LAYER nodes keep whatever pixel offset the loader assigned.

=============================================================================
SCREEN POSITIONS
=============================================================================

`position` is relative to the parent, like any scene graph:

    world_position(tile) = space.position + layer.position + tile.position

The host renderer draws placeables at world_position in ascending z_order
(see Space.paint_order()).

=============================================================================
"""

from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple, TYPE_CHECKING

from .vector import Size, Vector3

if TYPE_CHECKING:
    from .space import Space


class NodeKind(Enum):
    SPACE = "space"
    LAYER = "layer"
    TILE = "tile"
    OBJECT = "object"

    @property
    def placeable(self) -> bool:
        return self in (NodeKind.TILE, NodeKind.OBJECT)


class Node:
    """
    Entity in the isometric scene tree.

    Parameters:
    -----------
    name : str
        Display name (layer name, object name, or empty)
    kind : NodeKind
        Tag deciding how the node is positioned
    coordinates : Vector3, optional
        Logical grid coordinate (defaults to the origin)
    size : Size, optional
        Pixel size of the drawn payload, drives anchor alignment
    texture : any, optional
        Opaque texture handle from the resource resolver
    properties : dict, optional
        Typed custom properties copied from the tile definition
    gid : int, optional
        Global tile id this node was created from
    """

    def __init__(self, name: str = "", kind: NodeKind = NodeKind.LAYER,
                 coordinates: Optional[Vector3] = None,
                 size: Optional[Size] = None, texture: Any = None,
                 properties: Optional[Dict[str, Any]] = None,
                 gid: Optional[int] = None):
        self.name = name
        self.kind = kind
        self.size = size
        self.texture = texture
        self.properties: Dict[str, Any] = dict(properties or {})
        self.gid = gid
        self.flips: Tuple[bool, bool, bool] = (False, False, False)
        self.visible = True
        self.opacity = 1.0

        self._coordinates = coordinates if coordinates is not None else Vector3.ZERO
        self._space: Optional['Space'] = None
        self.parent: Optional['Node'] = None
        self._children: List['Node'] = []
        self._child_set = set()

        # Derived from the enclosing space
        self.position: Tuple[float, float] = (0.0, 0.0)
        self.z_order = 0.0
        self.anchor: Tuple[float, float] = (0.5, 0.5)

    def __repr__(self) -> str:
        c = self._coordinates
        return (f"Node({self.kind.value} {self.name!r} "
                f"at ({c.x:g}, {c.y:g}, {c.z:g}))")

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def placeable(self) -> bool:
        return self.kind.placeable

    @property
    def space(self) -> Optional['Space']:
        return self._space

    @property
    def children(self) -> Tuple['Node', ...]:
        return tuple(self._children)

    @property
    def coordinates(self) -> Vector3:
        return self._coordinates

    @coordinates.setter
    def coordinates(self, value: Vector3):
        """
        Move the node to a new logical coordinate.

        Position AND paint-order key are refreshed together, so a node that
        moves between cells is always sorted where it is drawn.
        """
        self._coordinates = value
        self.refresh()

    @property
    def world_position(self) -> Tuple[float, float]:
        """Screen position accumulated up to and including the Space."""
        x, y = 0.0, 0.0
        node: Optional[Node] = self
        while node is not None:
            x += node.position[0]
            y += node.position[1]
            if node is node._space:
                break
            node = node.parent
        return (x, y)

    # =========================================================================
    # TREE OPERATIONS
    # =========================================================================

    def attach(self, child: 'Node') -> bool:
        """
        Add a child and propagate this node's space through it.

        Parameters:
        -----------
        child : Node
            Node (possibly with its own subtree) to adopt

        Returns:
        --------
        bool : False if child was already attached here (nothing changes)

        Raises:
        -------
        ValueError : child is this node or one of its ancestors
        """
        if child in self._child_set:
            return False

        ancestor: Optional[Node] = self
        while ancestor is not None:
            if ancestor is child:
                raise ValueError(f"cannot attach {child!r} below itself")
            ancestor = ancestor.parent

        if child.parent is not None:
            child.parent.detach(child)

        self._children.append(child)
        self._child_set.add(child)
        child.parent = self
        child.set_space(self._space)
        return True

    def detach(self, child: 'Node') -> bool:
        """Remove a child; it and its subtree lose their space."""
        if child not in self._child_set:
            return False
        self._children.remove(child)
        self._child_set.discard(child)
        child.parent = None
        child.set_space(None)
        return True

    def set_space(self, space: Optional['Space']):
        """
        Assign the enclosing space to this node and all its descendants.

        Every placeable node in the subtree gets its position, paint-order
        key and anchor recomputed from the new space.
        """
        self._space = space
        self.refresh()
        for child in self._children:
            child.set_space(space)

    def refresh(self):
        """Recompute the space-derived attributes of this node only."""
        space = self._space
        if space is None or not self.placeable:
            return
        self.position = space.compute_position(self._coordinates)
        self.z_order = space.compute_z_order(self._coordinates)
        self._refresh_anchor(space)

    def _refresh_anchor(self, space: 'Space'):
        # Base of the sprite sits on the tile diamond, extra height goes up
        if self.size is not None and self.size.height > 0:
            self.anchor = (self.anchor[0],
                           (space.tile_size.height / 2) / self.size.height)

    # =========================================================================
    # TRAVERSAL
    # =========================================================================

    def walk(self) -> Iterator['Node']:
        """Yield every descendant, depth-first, in insertion order."""
        stack = list(reversed(self._children))
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node._children))

    def placeables(self) -> Iterator['Node']:
        return (node for node in self.walk() if node.placeable)

    def find(self, name: str) -> Optional['Node']:
        """First descendant with the given name, or None."""
        for node in self.walk():
            if node.name == name:
                return node
        return None
