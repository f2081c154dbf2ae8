"""TMX reading: the streaming parser and its helpers"""

from .parser import (
    TileMapParser, TileDefinition, ParserState,
    load_map, load_map_string,
)
from .properties import parse_property, convert_value
from .tile_data import decode_gids, split_gid

__all__ = [
    "TileMapParser",
    "TileDefinition",
    "ParserState",
    "load_map",
    "load_map_string",
    "parse_property",
    "convert_value",
    "decode_gids",
    "split_gid",
]
