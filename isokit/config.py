"""
Configuration for map loading and texture resolution.

Defaults match Tiled's own behaviour; change them per loader instance.
"""

from dataclasses import dataclass
from typing import Tuple


@dataclass
class ParserConfig:
    """Tile-map parser configuration."""
    load_external_tilesets: bool = True   # follow <tileset source="x.tsx">
    decode_layer_data: bool = True        # decode csv/base64 <data> payloads
    clip_to_map: bool = True              # drop cells past the last map row
    logger_name: str = "isokit.tmx"       # logger used by the default sink


@dataclass
class ResolverConfig:
    """Texture lookup configuration."""
    extensions: Tuple[str, ...] = (".png", ".jpg", ".jpeg", ".gif", ".bmp", ".webp")
    probe_size: bool = True               # read image headers for native size
