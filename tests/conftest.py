import pytest
from PIL import Image

from isokit.errors import Severity


GRASS_TILESET = """
 <tileset firstgid="1" name="ground" tilewidth="64" tileheight="32" tilecount="2" columns="0">
  <tile id="0">
   <properties>
    <property name="walkable" type="bool" value="true"/>
    <property name="cost" type="int" value="3"/>
   </properties>
   <image width="64" height="32" source="../art/tiles/grass.png"/>
  </tile>
  <tile id="1">
   <image width="64" height="96" source="../art/tiles/tower.png"/>
  </tile>
 </tileset>
"""


def build_map(body, width=2, height=2, tilewidth=64, tileheight=32,
              orientation="isometric", extra=""):
    attrs = ['version="1.10"']
    if orientation is not None:
        attrs.append(f'orientation="{orientation}"')
    if width is not None:
        attrs.append(f'width="{width}"')
    if height is not None:
        attrs.append(f'height="{height}"')
    if tilewidth is not None:
        attrs.append(f'tilewidth="{tilewidth}"')
    if tileheight is not None:
        attrs.append(f'tileheight="{tileheight}"')
    if extra:
        attrs.append(extra)
    return ('<?xml version="1.0" encoding="UTF-8"?>\n'
            f'<map {" ".join(attrs)}>\n{body}\n</map>\n')


@pytest.fixture
def make_map():
    """Factory for synthetic TMX documents."""
    return build_map


@pytest.fixture
def grass_tileset():
    return GRASS_TILESET


@pytest.fixture
def sink():
    """Log sink recording (message, severity, line) tuples."""
    class RecordingSink:
        def __init__(self):
            self.records = []

        def __call__(self, message, severity, line=None):
            self.records.append((message, severity, line))

        @property
        def warnings(self):
            return [m for m, s, _ in self.records if s is Severity.WARNING]

        @property
        def errors(self):
            return [m for m, s, _ in self.records if s is Severity.ERROR]

    return RecordingSink()


@pytest.fixture
def asset_dir(tmp_path):
    """Asset tree with a few images of known sizes."""
    root = tmp_path / "assets"
    (root / "tiles").mkdir(parents=True)
    (root / "sheets").mkdir()
    Image.new("RGBA", (64, 32), "green").save(root / "tiles" / "grass.png")
    Image.new("RGBA", (64, 96), "grey").save(root / "tiles" / "tower.png")
    Image.new("RGBA", (128, 64), "blue").save(root / "sheets" / "terrain.png")
    Image.new("RGB", (10, 10), "red").save(root / "grass.jpg")
    return root
