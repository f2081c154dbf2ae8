import base64
import gzip
import struct
import zlib

import pytest

from isokit.map.tile_data import (
    FLIPPED_DIAGONALLY, FLIPPED_HORIZONTALLY, FLIPPED_VERTICALLY,
    decode_gids, split_gid,
)


def _pack(gids):
    return struct.pack(f"<{len(gids)}I", *gids)


def test_csv_with_row_breaks():
    assert decode_gids("\n1,0,\n3,4\n", "csv") == [1, 0, 3, 4]


def test_csv_rejects_garbage():
    with pytest.raises(ValueError):
        decode_gids("1,x,3", "csv")


@pytest.mark.parametrize("compression, compress", [
    (None, lambda b: b),
    ("zlib", zlib.compress),
    ("gzip", gzip.compress),
])
def test_base64(compression, compress):
    gids = [1, 0, 2, FLIPPED_HORIZONTALLY | 7]
    text = base64.b64encode(compress(_pack(gids))).decode("ascii")
    assert decode_gids(f"\n   {text}\n", "base64", compression) == gids


def test_base64_length_must_be_whole_cells():
    text = base64.b64encode(b"\x01\x00\x00").decode("ascii")
    with pytest.raises(ValueError):
        decode_gids(text, "base64")


def test_corrupt_compressed_data():
    text = base64.b64encode(b"not zlib at all").decode("ascii")
    with pytest.raises(ValueError):
        decode_gids(text, "base64", "zlib")


@pytest.mark.parametrize("encoding, compression", [("xml", None), ("base64", "lzma")])
def test_unknown_encoding_or_compression(encoding, compression):
    with pytest.raises(ValueError):
        decode_gids("AAAA", encoding, compression)


def test_split_gid():
    assert split_gid(5) == (5, (False, False, False))
    assert split_gid(FLIPPED_HORIZONTALLY | 5) == (5, (True, False, False))
    assert split_gid(FLIPPED_VERTICALLY | FLIPPED_DIAGONALLY | 9) == (9, (False, True, True))
