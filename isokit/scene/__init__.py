"""Isometric scene tree: coordinates, nodes and the projecting Space"""

from .vector import Vector3, Size
from .node import Node, NodeKind
from .space import Space, SpaceType

__all__ = ["Vector3", "Size", "Node", "NodeKind", "Space", "SpaceType"]
