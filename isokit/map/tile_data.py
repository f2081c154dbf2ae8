"""
Layer data decoding

=============================================================================
DATA ENCODINGS
=============================================================================

Tiled can write the cells of a tile layer three ways:

1. XML (one element per cell):
       <data>
           <tile gid="1"/><tile gid="0"/>...
       </data>
   The parser handles these as individual tile events.

2. CSV:
       <data encoding="csv">
           1,0,
           1,1
       </data>

3. Base64 (little-endian uint32 per cell), optionally compressed:
       <data encoding="base64" compression="zlib">
           eJxjZGBgYAQAAA0AAg==
       </data>

   compression: none, zlib, gzip, zstd

This module turns forms 2 and 3 into a flat, row-major list of GIDs.

=============================================================================
FLIP FLAGS
=============================================================================

The three highest bits of a GID are not part of the id:

    bit 31  horizontal flip
    bit 30  vertical flip
    bit 29  diagonal flip (anti-diagonal, used for 90 degree rotation)

split_gid() separates them.

=============================================================================
"""

import base64
import gzip
import zlib
from typing import List, Optional, Tuple

import numpy as np

FLIPPED_HORIZONTALLY = 0x80000000
FLIPPED_VERTICALLY = 0x40000000
FLIPPED_DIAGONALLY = 0x20000000
GID_MASK = 0x1FFFFFFF


def split_gid(raw: int) -> Tuple[int, Tuple[bool, bool, bool]]:
    """
    Split a raw GID into (gid, (flip_h, flip_v, flip_d)).

    Example:
        split_gid(0x80000005) -> (5, (True, False, False))
    """
    flips = (bool(raw & FLIPPED_HORIZONTALLY),
             bool(raw & FLIPPED_VERTICALLY),
             bool(raw & FLIPPED_DIAGONALLY))
    return raw & GID_MASK, flips


def decode_gids(text: Optional[str], encoding: str,
                compression: Optional[str] = None) -> List[int]:
    """
    Decode the text of a <data> element.

    Parameters:
    -----------
    text : str
        Element text
    encoding : str
        "csv" or "base64"
    compression : str, optional
        For base64: None, "zlib", "gzip" or "zstd"

    Returns:
    --------
    list : Raw GIDs (flip flags still set), row-major

    Raises:
    -------
    ValueError : unknown encoding/compression, or data that does not decode
    """
    text = (text or "").strip()

    if encoding == "csv":
        # Trailing commas at row ends create empty elements
        try:
            return [int(x) for x in text.replace("\n", "").split(",") if x.strip()]
        except ValueError as e:
            raise ValueError(f"invalid csv layer data: {e}") from None

    if encoding == "base64":
        try:
            raw_data = base64.b64decode(text, validate=False)
        except ValueError as e:
            raise ValueError(f"invalid base64 layer data: {e}") from None
        raw_data = _decompress(raw_data, compression)

        if len(raw_data) % 4:
            raise ValueError(f"layer data length {len(raw_data)} is not a multiple of 4")
        # Each tile is 4 bytes (little-endian uint32)
        return np.frombuffer(raw_data, dtype="<u4").astype(np.int64).tolist()

    raise ValueError(f"unsupported layer data encoding: {encoding!r}")


def _decompress(raw_data: bytes, compression: Optional[str]) -> bytes:
    try:
        if not compression:
            return raw_data
        if compression == "zlib":
            return zlib.decompress(raw_data)
        if compression == "gzip":
            return gzip.decompress(raw_data)
    except (zlib.error, OSError, EOFError) as e:
        raise ValueError(f"could not decompress layer data ({compression}): {e}") from None

    if compression == "zstd":
        # zstd requires external library (not in stdlib)
        try:
            import zstandard as zstd
        except ImportError:
            raise ImportError(
                "zstandard library required for zstd compression. "
                "Install with: pip install zstandard"
            )
        try:
            return zstd.ZstdDecompressor().decompressobj().decompress(raw_data)
        except zstd.ZstdError as e:
            raise ValueError(f"could not decompress layer data (zstd): {e}") from None

    raise ValueError(f"unsupported layer data compression: {compression!r}")
