#!/usr/bin/env python3
"""
isokit map inspector

Usage:
    python -m isokit <map.tmx> [--assets DIR] [--limit N]

Example:
    python -m isokit maps/town.tmx --assets art/ --limit 20 --verbose

Loads the map, then prints the world summary, the layer tree and the first
nodes in paint order (back to front). Exits with status 1 if the map cannot
be loaded.
"""

import argparse
import logging
import sys
from typing import List, Optional

from . import __version__
from .config import ParserConfig
from .errors import MapLoadError
from .log import setup_logging
from .map.parser import TileMapParser
from .resources.texture import DirectoryTextureResolver
from .scene.node import Node, NodeKind
from .scene.space import Space

log = logging.getLogger("isokit.cli")


class CustomHelpFormatter(
    argparse.ArgumentDefaultsHelpFormatter, argparse.RawTextHelpFormatter
):
    """Show defaults and keep the epilog's line breaks."""

    pass


def parse_arguments(args=None):
    """Parses command-line arguments."""
    examples = [
        "\nExamples:",
        "  python -m isokit maps/town.tmx",
        "  python -m isokit maps/town.tmx --assets art/ --limit 50",
        "  python -m isokit maps/town.tmx -v --color-logs",
    ]
    parser = argparse.ArgumentParser(
        prog="isokit",
        description="Inspect an isometric Tiled map as isokit loads it.",
        formatter_class=CustomHelpFormatter,
        epilog="\n".join(examples),
    )
    parser.add_argument("map_file", help="Path to the .tmx file.")
    parser.add_argument(
        "-a",
        "--assets",
        metavar="DIR",
        help="Directory searched for tile images (default: no textures).",
    )
    parser.add_argument(
        "-n",
        "--limit",
        type=int,
        default=10,
        metavar="N",
        help="Number of nodes listed in paint order (0 = all).",
    )
    parser.add_argument(
        "--no-external-tilesets",
        action="store_false",
        dest="external_tilesets",
        help="Do not read <tileset source=...> files. (default: read them)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable DEBUG logging of the parse.",
    )
    parser.add_argument(
        "--color-logs",
        action="store_true",
        help="Enable colored logging output.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(args)


def print_summary(space: Space, diagnostics_count: int):
    ws, ts = space.world_size, space.tile_size
    print("=== World ===")
    print(f"Projection: {space.type.value}")
    print(f"World size: {ws.x:g} x {ws.y:g} x {ws.z:g} cells")
    print(f"Tile size:  {ts.width:g} x {ts.height:g} px")
    print(f"Nodes:      {sum(1 for _ in space.placeables())} placed")
    print(f"Warnings:   {diagnostics_count}")


def print_layers(space: Space):
    print("\n=== Layers ===")
    for layer, depth in _layers_with_depth(space):
        tiles = sum(1 for node in layer.children if node.kind is NodeKind.TILE)
        objects = sum(1 for node in layer.children if node.kind is NodeKind.OBJECT)
        flags = "" if layer.visible else " (hidden)"
        print(f"{'  ' * depth}- {layer.name or '<unnamed>'}: z={layer.coordinates.z:g} "
              f"offset=({layer.position[0]:g}, {layer.position[1]:g}) "
              f"tiles={tiles} objects={objects}{flags}")


def _layers_with_depth(node: Node, depth: int = 0):
    for child in node.children:
        if child.kind is NodeKind.LAYER:
            yield child, depth
            yield from _layers_with_depth(child, depth + 1)


def print_paint_order(space: Space, limit: int):
    nodes = space.paint_order()
    shown = nodes if limit <= 0 else nodes[:limit]
    print(f"\n=== Paint order ({len(shown)} of {len(nodes)}) ===")
    for node in shown:
        c = node.coordinates
        x, y = node.world_position
        texture = getattr(node.texture, "name", None) or "-"
        print(f"{node.z_order:10.6f}  {node.kind.value:<6} gid={node.gid:<4} "
              f"({c.x:g}, {c.y:g}, {c.z:g}) -> ({x:g}, {y:g})  {texture}")


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_arguments(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.WARNING,
                  color_logs=args.color_logs)

    resolver = DirectoryTextureResolver(args.assets) if args.assets else None
    parser = TileMapParser(resolver=resolver,
                           config=ParserConfig(load_external_tilesets=args.external_tilesets))
    try:
        space = parser.parse_file(args.map_file)
    except MapLoadError as e:
        log.error("Could not load %s: %s", args.map_file, e)
        return 1

    print_summary(space, len(parser.diagnostics))
    print_layers(space)
    print_paint_order(space, args.limit)
    return 0


if __name__ == "__main__":
    sys.exit(main())
