"""
Streaming TMX parser building an isometric scene tree

=============================================================================
WHY STREAMING?
=============================================================================

Instead of building a full XML document and walking it, the parser reacts
to structural events (element start, element end, text) as the XML is read:

    <map ...>                    -> map start      (sizes, orientation)
      <tileset firstgid="1">     -> tileset start  (open a GID scope)
        <tile id="0">            -> tile start     (new tile definition)
          <image source=".."/>   -> image start    (resolve its texture)
        </tile>                  -> tile end
      </tileset>                 -> tileset end
      <layer name="Roof+2">      -> layer start    (new Layer node, z = 2)
        <data>
          <tile gid="1"/>        -> tile start     (place a Tile node)
        </data>
      </layer>                   -> layer end
    </map>                       -> map end        (build the Space)

Every event transforms one explicit ParserState value. Nothing is parsed
twice and nothing is looked up after the fact, so the order of the document
matters: tilesets must come before the layers that use them (Tiled always
writes them in that order).

=============================================================================
STATE MACHINE
=============================================================================

    Idle --map--> InMap --tileset--> InTileset --tile--> InTileDefinition
                    |                                     |-- image
                    |                                     '-- property
                    |--layer/objectgroup/group--> InLayer --tile--> (cell)
                    |                                     '-object--> InObject
                    '--/map--> Done

The raster cursor walks the cells of the current layer row by row:

    (0,0) (1,0) ... (W-1,0)
    (0,1) (1,1) ... (W-1,1)
    ...

and advances on EVERY cell, including empty (GID 0) and invalid ones, so a
bad cell never shifts the rest of the layer.

=============================================================================
ERRORS
=============================================================================

Fatal (raise MapLoadError, no Space):
    - unreadable/missing document, broken XML
    - map without usable width/height/tilewidth/tileheight
    - orientation other than "isometric"

Everything else is recoverable: the element is skipped, a Diagnostic is
recorded and the log sink receives a warning.

=============================================================================
"""

import logging
import math
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from ..config import ParserConfig
from ..errors import (
    Diagnostic, ErrorKind, MalformedDocument, MapLoadError,
    MissingRequiredAttribute, ResourceNotFound, Severity,
    UnreadableResource, UnsupportedOrientation,
)
from ..log import LoggingSink, LogSink
from ..resources.texture import TextureRegion, TextureResolver, texture_key
from ..scene.node import Node, NodeKind
from ..scene.space import Space, SpaceType
from ..scene.vector import Size, Vector3
from .properties import PropertyValue, parse_property
from .tile_data import decode_gids, split_gid

logger = logging.getLogger(__name__)

# "Roof+2" -> z index 2
LAYER_Z_PATTERN = re.compile(r"^(?P<name>.*)\+(?P<z>\d+)$")


class Phase(Enum):
    IDLE = "idle"
    IN_MAP = "in-map"
    DONE = "done"


@dataclass
class TileDefinition:
    """What a GID stands for while the map is being read."""
    texture_key: Tuple[str, ...] = ()
    texture: Any = None
    properties: Dict[str, PropertyValue] = field(default_factory=dict)
    line: Optional[int] = None


@dataclass
class TilesetScope:
    """
    An open <tileset> element.

    first_gid is None when the tileset could not be numbered; its tiles are
    then ignored (the problem was already reported).
    """
    first_gid: Optional[int]
    base: Tuple[str, ...] = ()               # Directory of an external .tsx
    tile_width: int = 0
    tile_height: int = 0
    columns: int = 0
    tilecount: int = 0
    spacing: int = 0
    margin: int = 0
    sheet_key: Tuple[str, ...] = ()          # Spritesheet image, if any
    sheet: Any = None
    sheet_width: int = 0
    sheet_height: int = 0


@dataclass
class ParserState:
    """Everything one parse accumulates, threaded through the handlers."""
    phase: Phase = Phase.IDLE
    elements: List[str] = field(default_factory=list)   # Open element tags
    skip_depth: Optional[int] = None                     # Ignoring a subtree

    space_type: SpaceType = SpaceType.DIAMOND
    tile_size: Optional[Size] = None
    world_size: Optional[Vector3] = None

    definitions: Dict[int, TileDefinition] = field(default_factory=dict)
    tileset: Optional[TilesetScope] = None
    definition: Optional[TileDefinition] = None

    layers: List[Node] = field(default_factory=list)       # Top-level, in order
    open_layers: List[Node] = field(default_factory=list)  # Innermost last
    in_layer: bool = False
    in_object: bool = False
    cursor: Tuple[int, int] = (0, 0)
    overflow_reported: bool = False
    missing_gid_reported: bool = False

    data_encoding: Optional[str] = None
    data_compression: Optional[str] = None
    data_text: List[str] = field(default_factory=list)


class TileMapParser:
    """
    Single-pass TMX reader producing a Space.

    Parameters:
    -----------
    resolver : TextureResolver, optional
        Looks up textures for image keys; without one, nodes keep no texture
        (their definitions still record the key)
    log_sink : LogSink, optional
        Receives warnings; defaults to the `isokit.tmx` logger
    config : ParserConfig, optional

    An instance handles one parse at a time and is not thread-safe. It may
    be reused for several maps in sequence.

    ==========================================================================
    USAGE EXAMPLE
    ==========================================================================

    ```python
    parser = TileMapParser(resolver=DirectoryTextureResolver("assets"))
    try:
        space = parser.parse_file("maps/town.tmx")
    except MapLoadError as e:
        print(f"Cannot load map: {e}")
    else:
        for node in space.paint_order():
            draw(node.texture, node.world_position)

    for diagnostic in parser.diagnostics:
        print(diagnostic)
    ```

    ==========================================================================
    """

    def __init__(self, resolver: Optional[TextureResolver] = None,
                 log_sink: Optional[LogSink] = None,
                 config: Optional[ParserConfig] = None):
        self.config = config or ParserConfig()
        self.resolver = resolver
        self.log_sink = log_sink or LoggingSink(self.config.logger_name)
        self.diagnostics: List[Diagnostic] = []

        self._state = ParserState()
        self._busy = False
        self._result: Optional[Space] = None
        self._line: Optional[int] = None
        self._base_dir: Optional[Path] = None
        self._prefix = ""
        self._external: Optional[Tuple[int, Tuple[str, ...]]] = None

        self._start_handlers = {
            "map": self._start_map,
            "tileset": self._start_tileset,
            "tile": self._start_tile,
            "image": self._start_image,
            "property": self._start_property,
            "layer": self._start_layer,
            "objectgroup": self._start_layer,
            "group": self._start_layer,
            "data": self._start_data,
            "object": self._start_object,
            "imagelayer": self._start_unsupported,
            "chunk": self._start_unsupported,
        }
        self._end_handlers = {
            "map": self._end_map,
            "tileset": self._end_tileset,
            "tile": self._end_tile,
            "layer": self._end_layer,
            "objectgroup": self._end_layer,
            "group": self._end_layer,
            "data": self._end_data,
            "object": self._end_object,
        }

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    def parse_file(self, path: Union[str, Path]) -> Space:
        """
        Parse a .tmx file.

        External tilesets and nothing else are resolved relative to the
        file's directory.

        Raises:
        -------
        MapLoadError : any fatal failure (see module docstring)
        """
        path = Path(path)
        try:
            stream = open(path, "rb")
        except FileNotFoundError:
            raise ResourceNotFound(f"map file not found: {path}") from None
        except OSError as e:
            raise UnreadableResource(f"cannot open {path}: {e}") from None

        with stream:
            return self._run(stream, base_dir=path.parent)

    def parse_string(self, text: Union[str, bytes]) -> Space:
        """Parse a TMX document held in memory."""
        return self._run(text.splitlines(keepends=True), base_dir=None)

    def parse_stream(self, stream: Iterable, base_dir: Optional[Union[str, Path]] = None) -> Space:
        """Parse any iterable of text or byte lines (e.g. an open file)."""
        return self._run(stream, base_dir=Path(base_dir) if base_dir is not None else None)

    # =========================================================================
    # DRIVER
    # =========================================================================

    def _run(self, lines: Iterable, base_dir: Optional[Path]) -> Space:
        if self._busy:
            raise RuntimeError("TileMapParser is already parsing a document")
        self._busy = True

        self._state = ParserState()
        self._result = None
        self.diagnostics = []
        self._base_dir = base_dir
        self._prefix = ""
        self._external = None
        try:
            self._feed(lines)
            if self._state.phase is not Phase.DONE or self._result is None:
                raise MalformedDocument("document ended before </map>", line=self._line)
            return self._result
        finally:
            # Partial state is never kept, whether the parse succeeded or not
            self._state = ParserState()
            self._result = None
            self._busy = False

    def _feed(self, lines: Iterable):
        xml_parser = ET.XMLParser(target=_EventTarget(self))
        try:
            for line_no, line in enumerate(lines, 1):
                self._line = line_no
                xml_parser.feed(line)
            xml_parser.close()
        except ET.ParseError as e:
            raise MalformedDocument(f"{self._prefix}{e}", line=e.position[0]) from None
        except OSError as e:
            raise UnreadableResource(f"{self._prefix}read failed: {e}", line=self._line) from None

    def _on_start(self, tag: str, attrib: Dict[str, str]):
        state = self._state
        state.elements.append(tag)
        if state.skip_depth is not None:
            return

        if state.phase is Phase.IDLE and tag != "map":
            raise MalformedDocument(f"expected <map> root element, found <{tag}>",
                                    line=self._line)
        if state.phase is Phase.DONE:
            raise MalformedDocument(f"<{tag}> after the end of the map", line=self._line)

        handler = self._start_handlers.get(tag)
        if handler is not None:
            handler(attrib)

    def _on_end(self, tag: str):
        state = self._state
        state.elements.pop()
        if state.skip_depth is not None:
            if len(state.elements) < state.skip_depth:
                state.skip_depth = None
            return

        handler = self._end_handlers.get(tag)
        if handler is not None:
            handler()

    def _on_data(self, text: str):
        state = self._state
        if state.data_encoding is not None and state.skip_depth is None:
            state.data_text.append(text)

    def _warn(self, kind: ErrorKind, message: str):
        diagnostic = Diagnostic(kind, self._prefix + message, Severity.WARNING, self._line)
        self.diagnostics.append(diagnostic)
        self.log_sink(diagnostic.message, diagnostic.severity, diagnostic.line)

    def _skip_subtree(self):
        """Ignore the current element and everything inside it."""
        self._state.skip_depth = len(self._state.elements)

    def _parent_tag(self) -> Optional[str]:
        elements = self._state.elements
        return elements[-2] if len(elements) >= 2 else None

    # =========================================================================
    # MAP
    # =========================================================================

    def _start_map(self, attrib: Dict[str, str]):
        state = self._state
        if state.phase is not Phase.IDLE:
            raise MalformedDocument("nested <map> element", line=self._line)

        width = self._map_dimension(attrib, "width")
        height = self._map_dimension(attrib, "height")
        tile_width = self._map_dimension(attrib, "tilewidth")
        tile_height = self._map_dimension(attrib, "tileheight")

        orientation = attrib.get("orientation")
        if orientation is None:
            self._warn(ErrorKind.MISSING_REQUIRED_ATTRIBUTE,
                       f"map has no orientation, assuming {SpaceType.DIAMOND.value!r}")
            state.space_type = SpaceType.DIAMOND
        else:
            try:
                state.space_type = SpaceType.from_orientation(orientation)
            except ValueError:
                raise UnsupportedOrientation(
                    f"orientation {orientation!r} is not supported "
                    f"(only {SpaceType.DIAMOND.value!r})", line=self._line) from None

        if attrib.get("infinite", "0") == "1":
            self._warn(ErrorKind.UNSUPPORTED_OBJECT_KIND,
                       "infinite maps are not supported, chunked layer data is ignored")

        state.world_size = Vector3(width, height, 1)
        state.tile_size = Size(tile_width, tile_height)
        state.phase = Phase.IN_MAP
        logger.debug("Map %dx%d, tiles %dx%d", width, height, tile_width, tile_height)

    def _map_dimension(self, attrib: Dict[str, str], name: str) -> int:
        raw = attrib.get(name)
        if raw is None:
            raise MissingRequiredAttribute(f"map has no {name!r} attribute", line=self._line)
        try:
            value = int(raw)
        except ValueError:
            raise MalformedDocument(f"map {name!r} is not an integer: {raw!r}",
                                    line=self._line) from None
        if value <= 0:
            raise MalformedDocument(f"map {name!r} must be positive, got {value}",
                                    line=self._line)
        return value

    def _end_map(self):
        state = self._state
        space = Space(state.tile_size, state.world_size, state.space_type)
        # Attaching cascades positions and paint keys through every subtree
        for layer in state.layers:
            space.attach(layer)

        state.phase = Phase.DONE
        self._result = space
        logger.debug("Built %r with %d layers and %d placed nodes",
                     space, len(state.layers), sum(1 for _ in space.placeables()))

    # =========================================================================
    # TILESETS
    # =========================================================================

    def _start_tileset(self, attrib: Dict[str, str]):
        state = self._state
        state.definition = None

        if self._external is not None:
            # Root of an external .tsx: numbered by the referencing map
            first_gid, base = self._external
            self._external = None
        else:
            raw = attrib.get("firstgid")
            if raw is None:
                self._warn(ErrorKind.MISSING_REQUIRED_ATTRIBUTE,
                           "tileset has no firstgid, its tiles are ignored")
                state.tileset = TilesetScope(first_gid=None)
                return
            try:
                first_gid = int(raw)
                if first_gid < 1:
                    raise ValueError(raw)
            except ValueError:
                self._warn(ErrorKind.INVALID_ATTRIBUTE,
                           f"invalid tileset firstgid {raw!r}, its tiles are ignored")
                state.tileset = TilesetScope(first_gid=None)
                return

            source = attrib.get("source")
            if source:
                state.tileset = TilesetScope(first_gid=first_gid)
                self._load_external_tileset(first_gid, source)
                return
            base = ()

        state.tileset = TilesetScope(
            first_gid=first_gid,
            base=base,
            tile_width=self._optional_int(attrib, "tilewidth"),
            tile_height=self._optional_int(attrib, "tileheight"),
            columns=self._optional_int(attrib, "columns"),
            tilecount=self._optional_int(attrib, "tilecount"),
            spacing=self._optional_int(attrib, "spacing"),
            margin=self._optional_int(attrib, "margin"),
        )

    def _end_tileset(self):
        state = self._state
        scope = state.tileset
        state.tileset = None
        state.definition = None
        if scope is None or scope.first_gid is None or not scope.sheet_key:
            return
        self._cut_spritesheet(scope)

    def _cut_spritesheet(self, scope: TilesetScope):
        """
        Give every tile of a spritesheet tileset its region of the sheet.

        +--+---+---+---+
        |  | 0 | 1 | 2 |   margin around the sheet,
        +--+---+---+---+   spacing between tiles
        |  | 3 | 4 | 5 |
        +--+---+---+---+
        """
        tw, th = scope.tile_width, scope.tile_height
        columns, tilecount = scope.columns, scope.tilecount
        if tw > 0 and th > 0 and scope.sheet_width and scope.sheet_height:
            fit_columns = (scope.sheet_width - 2 * scope.margin + scope.spacing) // (tw + scope.spacing)
            fit_rows = (scope.sheet_height - 2 * scope.margin + scope.spacing) // (th + scope.spacing)
            columns = columns or fit_columns
            tilecount = tilecount or fit_columns * fit_rows
        if not (tw > 0 and th > 0 and columns > 0 and tilecount > 0):
            self._warn(ErrorKind.INVALID_ATTRIBUTE,
                       f"spritesheet tileset (firstgid {scope.first_gid}) lacks tile size, "
                       f"columns or tilecount, its image is ignored")
            return

        definitions = self._state.definitions
        for local_id in range(tilecount):
            column, row = local_id % columns, local_id // columns
            gid = scope.first_gid + local_id
            definition = definitions.get(gid)
            if definition is None:
                definition = definitions[gid] = TileDefinition()
            if definition.texture_key:
                continue  # Own image wins over the sheet
            definition.texture_key = scope.sheet_key
            if scope.sheet is not None:
                definition.texture = TextureRegion(
                    scope.sheet,
                    scope.margin + column * (tw + scope.spacing),
                    scope.margin + row * (th + scope.spacing),
                    tw, th)
        logger.debug("Cut %d tiles from spritesheet %s", tilecount, "/".join(scope.sheet_key))

    def _load_external_tileset(self, first_gid: int, source: str):
        if not self.config.load_external_tilesets:
            logger.debug("Skipping external tileset %s", source)
            return
        if self._base_dir is None:
            self._warn(ErrorKind.RESOURCE_NOT_FOUND,
                       f"external tileset {source!r} cannot be located without a map directory")
            return

        path = self._base_dir / source
        try:
            stream = open(path, "rb")
        except OSError as e:
            self._warn(ErrorKind.RESOURCE_NOT_FOUND, f"external tileset not found: {path} ({e})")
            return

        posix_source = PurePosixPath(source.replace("\\", "/"))
        base = tuple(p for p in posix_source.parent.parts if p not in (".", "/"))

        state = self._state
        saved_line, saved_prefix = self._line, self._prefix
        saved_depth = len(state.elements)
        self._external = (first_gid, base)
        self._prefix = f"{source}: "
        try:
            with stream:
                self._feed(stream)
        except MapLoadError as e:
            self._line, self._prefix = saved_line, saved_prefix
            self._warn(e.kind, f"external tileset {source!r} is unusable: {e}")
            del state.elements[saved_depth:]
            state.skip_depth = None
            state.tileset = None
            state.definition = None
        finally:
            self._line, self._prefix = saved_line, saved_prefix
            self._external = None

    # =========================================================================
    # TILES
    # =========================================================================

    def _start_tile(self, attrib: Dict[str, str]):
        state = self._state
        if state.in_layer:
            self._start_cell(attrib)
        elif state.tileset is not None:
            self._start_definition(attrib)
        else:
            self._warn(ErrorKind.MALFORMED_DOCUMENT,
                       "<tile> outside of a tileset or layer is ignored")

    def _start_definition(self, attrib: Dict[str, str]):
        state = self._state
        scope = state.tileset
        if scope.first_gid is None:
            return

        raw = attrib.get("id")
        if raw is None:
            self._warn(ErrorKind.MISSING_REQUIRED_ATTRIBUTE, "tileset tile has no id, ignored")
            return
        try:
            local_id = int(raw)
            if local_id < 0:
                raise ValueError(raw)
        except ValueError:
            self._warn(ErrorKind.INVALID_ATTRIBUTE, f"invalid tile id {raw!r}, ignored")
            return

        definition = TileDefinition(line=self._line)
        state.definitions[scope.first_gid + local_id] = definition
        state.definition = definition

    def _end_tile(self):
        state = self._state
        if not state.in_layer:
            state.definition = None

    def _start_image(self, attrib: Dict[str, str]):
        state = self._state
        parent = self._parent_tag()
        scope = state.tileset
        if scope is None or scope.first_gid is None:
            return
        if parent == "tile" and state.definition is None:
            return  # Definition was rejected, already reported

        source = attrib.get("source")
        if not source:
            self._warn(ErrorKind.MISSING_REQUIRED_ATTRIBUTE,
                       "image has no source, tile left without texture")
            return
        key = texture_key(source, base=scope.base)
        if not key:
            self._warn(ErrorKind.INVALID_ATTRIBUTE,
                       f"image source {source!r} names no file, tile left without texture")
            return

        texture = self._resolve(key)
        if parent == "tileset":
            scope.sheet_key = key
            scope.sheet = texture
            scope.sheet_width = self._optional_int(attrib, "width")
            scope.sheet_height = self._optional_int(attrib, "height")
            size = getattr(texture, "size", None)
            if size is not None and not (scope.sheet_width and scope.sheet_height):
                scope.sheet_width, scope.sheet_height = int(size.width), int(size.height)
        elif state.definition is not None:
            state.definition.texture_key = key
            state.definition.texture = texture

    def _resolve(self, key: Tuple[str, ...]) -> Any:
        if self.resolver is None:
            return None
        texture = self.resolver.resolve(key)
        if texture is None:
            self._warn(ErrorKind.UNRESOLVED_TEXTURE,
                       f"no texture found for {'/'.join(key)!r}")
        return texture

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    def _start_property(self, attrib: Dict[str, str]):
        state = self._state
        definition = state.definition
        if definition is None or state.in_layer:
            owner = self._property_owner()
            self._warn(ErrorKind.UNSUPPORTED_OBJECT_KIND,
                       f"properties on <{owner}> are not supported, "
                       f"dropped {attrib.get('name', '?')!r}")
            return

        try:
            name, value = parse_property(attrib)
        except KeyError as e:
            self._warn(ErrorKind.MISSING_REQUIRED_ATTRIBUTE,
                       f"property has no {e.args[0]!r} attribute, ignored")
            return
        except ValueError as e:
            self._warn(ErrorKind.INVALID_ATTRIBUTE,
                       f"property {attrib.get('name')!r} ignored: {e}")
            return
        definition.properties[name] = value

    def _property_owner(self) -> str:
        for tag in reversed(self._state.elements[:-1]):
            if tag not in ("properties", "property"):
                return tag
        return "?"

    # =========================================================================
    # LAYERS
    # =========================================================================

    def _start_layer(self, attrib: Dict[str, str]):
        state = self._state
        tag = state.elements[-1]
        if state.tileset is not None:
            # Collision shapes drawn in the tileset editor
            self._skip_subtree()
            return

        name = attrib.get("name", "")
        parent = state.open_layers[-1] if state.open_layers else None
        layer = Node(name=name, kind=NodeKind.LAYER)

        match = LAYER_Z_PATTERN.match(name)
        z = 0
        if match:
            z = int(match.group("z"))
            if z + 1 > state.world_size.z:
                state.world_size = state.world_size.with_z(z + 1)
        elif parent is not None:
            z = int(parent.coordinates.z)
        layer.coordinates = Vector3(0, 0, z)

        if "offsetx" in attrib or "offsety" in attrib:
            try:
                offset_x = _finite_float(attrib.get("offsetx", "0"))
                offset_y = _finite_float(attrib.get("offsety", "0"))
            except ValueError:
                self._warn(ErrorKind.INVALID_ATTRIBUTE,
                           f"layer {name!r} has an invalid offset, ignored")
            else:
                # Document Y grows down, screen Y grows up
                screen_y = -offset_y
                if match and "offsety" in attrib:
                    screen_y -= z * state.tile_size.height
                layer.position = (offset_x, screen_y)

        layer.visible = attrib.get("visible", "1") != "0"
        if "opacity" in attrib:
            try:
                layer.opacity = min(max(_finite_float(attrib["opacity"]), 0.0), 1.0)
            except ValueError:
                self._warn(ErrorKind.INVALID_ATTRIBUTE,
                           f"layer {name!r} has an invalid opacity, ignored")

        if parent is not None:
            parent.attach(layer)
        else:
            state.layers.append(layer)
        state.open_layers.append(layer)

        state.in_layer = tag != "group"
        state.cursor = (0, 0)
        state.overflow_reported = False
        state.missing_gid_reported = False
        logger.debug("Layer %r (z=%d)", name, z)

    def _end_layer(self):
        state = self._state
        if state.open_layers:
            state.open_layers.pop()
        state.in_layer = False
        state.in_object = False
        state.cursor = (0, 0)

    def _start_data(self, attrib: Dict[str, str]):
        state = self._state
        if not state.in_layer:
            return
        state.data_encoding = attrib.get("encoding")
        state.data_compression = attrib.get("compression")
        state.data_text = []

    def _end_data(self):
        state = self._state
        encoding, compression = state.data_encoding, state.data_compression
        text = "".join(state.data_text)
        state.data_encoding = state.data_compression = None
        state.data_text = []
        if encoding is None or not state.in_layer:
            return
        if not self.config.decode_layer_data:
            logger.debug("Skipping %s layer data", encoding)
            return

        try:
            gids = decode_gids(text, encoding, compression)
        except (ValueError, ImportError) as e:
            self._warn(ErrorKind.INVALID_ATTRIBUTE,
                       f"layer {state.open_layers[-1].name!r} data not decoded: {e}")
            return
        for raw_gid in gids:
            self._place_cell(raw_gid)

    def _start_unsupported(self, attrib: Dict[str, str]):
        tag = self._state.elements[-1]
        self._warn(ErrorKind.UNSUPPORTED_OBJECT_KIND, f"<{tag}> is not supported, skipped")
        self._skip_subtree()

    # =========================================================================
    # CELLS
    # =========================================================================

    def _start_cell(self, attrib: Dict[str, str]):
        state = self._state
        raw = attrib.get("gid")
        if raw is None:
            # Once per layer: Tiled writes empty cells as a bare <tile/>
            if not state.missing_gid_reported:
                self._warn(ErrorKind.MISSING_REQUIRED_ATTRIBUTE,
                           f"layer {state.open_layers[-1].name!r} has cells without gid "
                           f"(first at {state.cursor}), skipped")
                state.missing_gid_reported = True
            self._advance_cursor()
            return
        try:
            raw_gid = int(raw)
            if raw_gid < 0:
                raise ValueError(raw)
        except ValueError:
            self._warn(ErrorKind.INVALID_ATTRIBUTE,
                       f"layer cell {self._state.cursor} has invalid gid {raw!r}, skipped")
            self._advance_cursor()
            return
        self._place_cell(raw_gid)

    def _advance_cursor(self):
        state = self._state
        x, y = state.cursor
        x += 1
        if x > state.world_size.x - 1:
            x = 0
            y += 1
        state.cursor = (x, y)

    def _place_cell(self, raw_gid: int):
        state = self._state
        x, y = state.cursor
        self._advance_cursor()

        gid, flips = split_gid(raw_gid)
        if gid == 0:
            return
        layer = state.open_layers[-1]

        if self.config.clip_to_map and y >= state.world_size.y:
            if not state.overflow_reported:
                self._warn(ErrorKind.INVALID_ATTRIBUTE,
                           f"layer {layer.name!r} has more cells than the map, extra cells dropped")
                state.overflow_reported = True
            return

        definition = state.definitions.get(gid)
        if definition is None:
            self._warn(ErrorKind.UNASSIGNED_TILE_REFERENCE,
                       f"gid {gid} at ({x}, {y}) in layer {layer.name!r} "
                       f"matches no tile definition, skipped")
            return

        node = self._make_node(NodeKind.TILE, "", gid, flips, definition,
                               Vector3(x, y, layer.coordinates.z), size=None)
        layer.attach(node)

    # =========================================================================
    # OBJECTS
    # =========================================================================

    def _start_object(self, attrib: Dict[str, str]):
        state = self._state
        if not state.open_layers:
            return
        state.in_object = True
        layer = state.open_layers[-1]
        name = attrib.get("name", "")
        label = name or f"#{attrib.get('id', '?')}"

        raw = attrib.get("gid")
        if raw is None:
            self._warn(ErrorKind.UNSUPPORTED_OBJECT_KIND,
                       f"object {label} has no gid, only tile objects are supported")
            return
        try:
            raw_gid = int(raw)
            if raw_gid < 0:
                raise ValueError(raw)
        except ValueError:
            self._warn(ErrorKind.INVALID_ATTRIBUTE, f"object {label} has invalid gid {raw!r}")
            return

        try:
            pixel_x = _finite_float(attrib["x"])
            pixel_y = _finite_float(attrib["y"])
        except KeyError as e:
            self._warn(ErrorKind.MISSING_REQUIRED_ATTRIBUTE,
                       f"object {label} has no {e.args[0]!r} position, skipped")
            return
        except ValueError:
            self._warn(ErrorKind.INVALID_ATTRIBUTE,
                       f"object {label} has an invalid position, skipped")
            return

        gid, flips = split_gid(raw_gid)
        definition = state.definitions.get(gid)
        if definition is None:
            self._warn(ErrorKind.UNASSIGNED_TILE_REFERENCE,
                       f"object {label} uses gid {gid} which matches no tile definition")
            return

        size = None
        if "width" in attrib and "height" in attrib:
            try:
                width = _finite_float(attrib["width"])
                height = _finite_float(attrib["height"])
            except ValueError:
                self._warn(ErrorKind.INVALID_ATTRIBUTE,
                           f"object {label} has an invalid size, using its texture size")
            else:
                if width > 0 and height > 0:
                    size = Size(width, height)

        # Diamond maps measure object positions in tile-height units on both axes
        tile_height = state.tile_size.height
        coordinates = Vector3(pixel_x / tile_height - 1,
                              pixel_y / tile_height - 1,
                              layer.coordinates.z)
        node = self._make_node(NodeKind.OBJECT, name, gid, flips, definition,
                               coordinates, size=size)
        layer.attach(node)

    def _end_object(self):
        self._state.in_object = False

    def _make_node(self, kind: NodeKind, name: str, gid: int,
                   flips: Tuple[bool, bool, bool], definition: TileDefinition,
                   coordinates: Vector3, size: Optional[Size]) -> Node:
        if size is None:
            size = getattr(definition.texture, "size", None) or self._state.tile_size
        node = Node(name=name, kind=kind, coordinates=coordinates, size=size,
                    texture=definition.texture, properties=definition.properties,
                    gid=gid)
        node.flips = flips
        return node

    @staticmethod
    def _optional_int(attrib: Dict[str, str], name: str) -> int:
        try:
            return int(attrib.get(name, 0))
        except ValueError:
            return 0


class _EventTarget:
    """ElementTree parser target forwarding events to a TileMapParser."""

    def __init__(self, parser: TileMapParser):
        self._parser = parser

    def start(self, tag, attrib):
        self._parser._on_start(tag, attrib)

    def end(self, tag):
        self._parser._on_end(tag)

    def data(self, text):
        self._parser._on_data(text)

    def close(self):
        return None


def _finite_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"not a finite number: {text!r}")
    return value


# =============================================================================
# CONVENIENCE LOADERS
# =============================================================================

def load_map(path: Union[str, Path], resolver: Optional[TextureResolver] = None,
             log_sink: Optional[LogSink] = None,
             config: Optional[ParserConfig] = None) -> Optional[Space]:
    """
    Load a .tmx file, returning None (after logging an error) on failure.

    Parameters:
    -----------
    path : str or Path
        Map file
    resolver : TextureResolver, optional
    log_sink : LogSink, optional
    config : ParserConfig, optional

    Returns:
    --------
    Space or None
    """
    parser = TileMapParser(resolver=resolver, log_sink=log_sink, config=config)
    try:
        return parser.parse_file(path)
    except MapLoadError as e:
        parser.log_sink(f"could not load map {path}: {e.message}", Severity.ERROR, e.line)
        return None


def load_map_string(text: Union[str, bytes], resolver: Optional[TextureResolver] = None,
                    log_sink: Optional[LogSink] = None,
                    config: Optional[ParserConfig] = None) -> Optional[Space]:
    """In-memory counterpart of load_map()."""
    parser = TileMapParser(resolver=resolver, log_sink=log_sink, config=config)
    try:
        return parser.parse_string(text)
    except MapLoadError as e:
        parser.log_sink(f"could not load map: {e.message}", Severity.ERROR, e.line)
        return None
