"""
Texture references and resolvers

=============================================================================
TEXTURE KEYS
=============================================================================

Tiled stores image paths relative to the .tmx (or .tsx) file:

    <image source="../art/tiles/grass.png"/>

Games rarely ship assets at the same relative location, so the loader does
not open that path. It turns it into a KEY, the path components with the
extension dropped from the last one:

    "../art/tiles/grass.png"  ->  ("art", "tiles", "grass")

and hands the key to a resolver. Resolvers try the full key first, then
shorter and shorter trailing suffixes:

    art/tiles/grass  ->  tiles/grass  ->  grass

and return the first texture they know, or None.

=============================================================================
TEXTURE HANDLES
=============================================================================

The scene tree treats textures as opaque. The only thing the loader needs
from one is its native pixel size (to size tile objects), exposed as `.size`.

- Texture: a whole image file
- TextureRegion: a rectangle inside a spritesheet Texture

=============================================================================
"""

import logging
import posixpath
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, Mapping, Optional, Protocol, Sequence, Set, Tuple, Union

from PIL import Image

from ..config import ResolverConfig
from ..scene.vector import Size

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Texture:
    """Image known to a resolver."""
    name: str                                # Key the texture was found under
    path: Optional[Path] = None              # File on disk, if any
    width: int = 0                           # Native width (0 = unknown)
    height: int = 0                          # Native height (0 = unknown)

    @property
    def size(self) -> Optional[Size]:
        if self.width > 0 and self.height > 0:
            return Size(self.width, self.height)
        return None


@dataclass(frozen=True)
class TextureRegion:
    """
    Rectangle of a spritesheet texture.

    x, y are measured from the top-left corner of the sheet, as in Tiled.
    """
    texture: Any
    x: int
    y: int
    width: int
    height: int

    @property
    def size(self) -> Size:
        return Size(self.width, self.height)


def texture_key(source: str, base: Sequence[str] = ()) -> Tuple[str, ...]:
    """
    Convert an image path to a texture key.

    Parameters:
    -----------
    source : str
        Path as written in the document (posix or windows separators)
    base : sequence of str
        Directory components the path is relative to (e.g. the folder of an
        external tileset, relative to the map)

    Returns:
    --------
    tuple : Path components, extension removed from the last one. Empty if
            the path names no file.
    """
    path = source.replace("\\", "/").strip()
    if not path or path.endswith("/"):
        return ()
    if base:
        path = posixpath.join(*base, path)
    path = posixpath.normpath(path)

    parts = [p for p in path.split("/") if p not in ("", ".", "..")]
    if not parts:
        return ()
    stem = posixpath.splitext(parts[-1])[0]
    if not stem:
        return ()
    parts[-1] = stem
    return tuple(parts)


def candidate_keys(components: Sequence[str]) -> Iterator[Tuple[str, ...]]:
    """Full key first, then each shorter trailing suffix."""
    components = tuple(components)
    for start in range(len(components)):
        yield components[start:]


class TextureResolver(Protocol):
    def resolve(self, components: Sequence[str]) -> Optional[Any]:
        ...


class StaticTextureResolver:
    """
    Resolver over an in-memory mapping.

    Keys are "/"-joined components without extension, e.g. "tiles/grass".
    Values are returned as-is, so any texture handle type works.
    """

    def __init__(self, textures: Mapping[str, Any]):
        self.textures = dict(textures)

    def resolve(self, components: Sequence[str]) -> Optional[Any]:
        for key in candidate_keys(components):
            texture = self.textures.get("/".join(key))
            if texture is not None:
                return texture
        return None


class DirectoryTextureResolver:
    """
    Resolver searching an asset directory tree.

    Every image below `root` is indexed under its relative path without
    extension AND under every trailing suffix of it, so "tiles/grass" and
    "grass" both find root/art/tiles/grass.png. When two files share a key,
    the first in sorted path order (and extension preference) wins.

    Native sizes are read from the image header with Pillow (no pixel data
    is decoded).

    Parameters:
    -----------
    root : str or Path
        Asset directory
    config : ResolverConfig, optional
        Accepted extensions and size probing
    """

    def __init__(self, root: Union[str, Path], config: Optional[ResolverConfig] = None):
        self.root = Path(root)
        self.config = config or ResolverConfig()
        self._index: Optional[Dict[Tuple[str, ...], Path]] = None
        self._cache: Dict[Tuple[str, ...], Texture] = {}
        self._failed: Set[Path] = set()

    def _build_index(self) -> Dict[Tuple[str, ...], Path]:
        extensions = [ext.lower() for ext in self.config.extensions]
        files = [p for p in self.root.rglob("*")
                 if p.is_file() and p.suffix.lower() in extensions]
        files.sort(key=lambda p: (p.relative_to(self.root).with_suffix("").as_posix(),
                                  extensions.index(p.suffix.lower())))

        index: Dict[Tuple[str, ...], Path] = {}
        for path in files:
            key = path.relative_to(self.root).with_suffix("").parts
            for suffix in candidate_keys(key):
                index.setdefault(suffix, path)

        logger.debug("Indexed %d images under %s", len(files), self.root)
        return index

    def resolve(self, components: Sequence[str]) -> Optional[Texture]:
        if self._index is None:
            self._index = self._build_index()

        for key in candidate_keys(components):
            if key in self._cache:
                return self._cache[key]
            path = self._index.get(key)
            if path is None or path in self._failed:
                continue
            texture = self._load(key, path)
            if texture is None:
                # Unreadable file: remember it and try the shorter keys
                self._failed.add(path)
                continue
            self._cache[key] = texture
            return texture
        return None

    def _load(self, key: Tuple[str, ...], path: Path) -> Optional[Texture]:
        name = "/".join(key)
        if not self.config.probe_size:
            return Texture(name=name, path=path)
        try:
            with Image.open(path) as image:
                width, height = image.size
        except OSError as e:
            logger.warning("Could not read image %s: %s", path, e)
            return None
        return Texture(name=name, path=path, width=width, height=height)
