import pytest
from PIL import Image

from isokit.config import ResolverConfig
from isokit.resources import (
    DirectoryTextureResolver, StaticTextureResolver, Texture, TextureRegion,
    candidate_keys, texture_key,
)
from isokit.scene import Size


@pytest.mark.parametrize("source, base, expected", [
    ("grass.png", (), ("grass",)),
    ("../art/tiles/grass.png", (), ("art", "tiles", "grass")),
    ("./tiles//grass.png", (), ("tiles", "grass")),
    ("art\\tiles\\grass.png", (), ("art", "tiles", "grass")),
    ("grass.png", ("tilesets",), ("tilesets", "grass")),
    ("../art/grass.png", ("tilesets",), ("art", "grass")),
    ("", (), ()),
    ("tiles/", (), ()),
])
def test_texture_key(source, base, expected):
    assert texture_key(source, base) == expected


def test_candidate_keys_shrink_from_the_front():
    assert list(candidate_keys(("a", "b", "c"))) == [("a", "b", "c"), ("b", "c"), ("c",)]


def test_static_resolver_falls_back_to_suffixes():
    resolver = StaticTextureResolver({"tiles/grass": "GRASS", "tower": "TOWER"})
    assert resolver.resolve(("art", "tiles", "grass")) == "GRASS"
    assert resolver.resolve(("art", "tower")) == "TOWER"
    assert resolver.resolve(("art", "water")) is None


def test_directory_resolver_reads_native_size(asset_dir):
    resolver = DirectoryTextureResolver(asset_dir)
    texture = resolver.resolve(("art", "tiles", "tower"))
    assert isinstance(texture, Texture)
    assert texture.size == Size(64, 96)
    assert texture.path == asset_dir / "tiles" / "tower.png"


def test_directory_resolver_prefers_longest_match(asset_dir):
    resolver = DirectoryTextureResolver(asset_dir)
    # tiles/grass.png beats the top-level grass.jpg for a key naming the folder
    assert resolver.resolve(("tiles", "grass")).size == Size(64, 32)
    assert resolver.resolve(("grass",)).size == Size(10, 10)


def test_directory_resolver_caches(asset_dir, mocker):
    resolver = DirectoryTextureResolver(asset_dir)
    spy = mocker.spy(resolver, "_load")
    first = resolver.resolve(("tiles", "grass"))
    second = resolver.resolve(("tiles", "grass"))
    assert first is second
    assert spy.call_count == 1


def test_directory_resolver_without_size_probe(asset_dir):
    resolver = DirectoryTextureResolver(asset_dir, ResolverConfig(probe_size=False))
    texture = resolver.resolve(("tower",))
    assert texture.size is None
    assert texture.name == "tower"


def test_unreadable_image_is_reported_and_skipped(tmp_path, caplog):
    (tmp_path / "broken.png").write_bytes(b"not an image")
    resolver = DirectoryTextureResolver(tmp_path)
    with caplog.at_level("WARNING", logger="isokit.resources.texture"):
        assert resolver.resolve(("broken",)) is None
    assert "broken.png" in caplog.text


def test_texture_region_size():
    sheet = Texture("sheet", width=128, height=64)
    assert TextureRegion(sheet, 64, 32, 64, 32).size == Size(64, 32)


def test_unreadable_match_falls_back_to_shorter_key(tmp_path, caplog):
    (tmp_path / "tiles").mkdir()
    (tmp_path / "tiles" / "grass.png").write_bytes(b"truncated")
    Image.new("RGBA", (32, 16), "green").save(tmp_path / "grass.png")
    resolver = DirectoryTextureResolver(tmp_path)

    with caplog.at_level("WARNING", logger="isokit.resources.texture"):
        first = resolver.resolve(("tiles", "grass"))
        second = resolver.resolve(("tiles", "grass"))

    assert first.size == Size(32, 16)
    assert second is first
    assert len(caplog.records) == 1
