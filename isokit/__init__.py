"""
isokit - Tiled (TMX) isometric maps as a paint-ordered scene tree

Requisites:
    pip install numpy pillow
    pip install zstandard      (optional, zstd-compressed layers)
"""

from .config import ParserConfig, ResolverConfig
from .errors import (
    Diagnostic, ErrorKind, IsokitError, MapLoadError, Severity,
    MalformedDocument, MissingRequiredAttribute, ResourceNotFound,
    UnreadableResource, UnsupportedOrientation,
)
from .log import LoggingSink, setup_logging
from .map import TileMapParser, load_map, load_map_string
from .resources import (
    Texture, TextureRegion, StaticTextureResolver, DirectoryTextureResolver,
)
from .scene import Node, NodeKind, Size, Space, SpaceType, Vector3

__version__ = "1.0.0"
__all__ = [
    "ParserConfig",
    "ResolverConfig",
    "Diagnostic",
    "ErrorKind",
    "IsokitError",
    "MapLoadError",
    "Severity",
    "MalformedDocument",
    "MissingRequiredAttribute",
    "ResourceNotFound",
    "UnreadableResource",
    "UnsupportedOrientation",
    "LoggingSink",
    "setup_logging",
    "TileMapParser",
    "load_map",
    "load_map_string",
    "Texture",
    "TextureRegion",
    "StaticTextureResolver",
    "DirectoryTextureResolver",
    "Node",
    "NodeKind",
    "Size",
    "Space",
    "SpaceType",
    "Vector3",
]
