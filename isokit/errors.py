"""
Error taxonomy for map loading

=============================================================================
FATAL VS RECOVERABLE
=============================================================================

Loading a map can fail in two very different ways:

1. FATAL: the document cannot describe a world at all.
   - The file is missing or unreadable
   - The XML is broken
   - The map has no usable size or tile size
   - The map declares an orientation we cannot project

   These raise a MapLoadError subclass. No Space is produced.

2. RECOVERABLE: one element is wrong, the rest of the map is fine.
   - A layer cell references a GID no tileset defines
   - An object has no GID (plain rectangles, points...)
   - An attribute cannot be parsed

   These never raise. The element is skipped and a Diagnostic is recorded
   and sent to the log sink with WARNING severity.

=============================================================================
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Severity(Enum):
    """Severity understood by log sinks."""
    WARNING = "warning"
    ERROR = "error"


class ErrorKind(Enum):
    """Every failure the loader can report."""
    RESOURCE_NOT_FOUND = "resource-not-found"
    UNREADABLE_RESOURCE = "unreadable-resource"
    MALFORMED_DOCUMENT = "malformed-document"
    MISSING_REQUIRED_ATTRIBUTE = "missing-required-attribute"
    UNSUPPORTED_ORIENTATION = "unsupported-orientation"
    UNASSIGNED_TILE_REFERENCE = "unassigned-tile-reference"
    UNSUPPORTED_OBJECT_KIND = "unsupported-object-kind"
    INVALID_ATTRIBUTE = "invalid-attribute"
    UNRESOLVED_TEXTURE = "unresolved-texture"


@dataclass(frozen=True)
class Diagnostic:
    """A non-fatal problem found while parsing."""
    kind: ErrorKind
    message: str
    severity: Severity = Severity.WARNING
    line: Optional[int] = None

    def __str__(self) -> str:
        if self.line is not None:
            return f"line {self.line}: {self.message}"
        return self.message


class IsokitError(Exception):
    """Base class for all isokit exceptions."""


class MapLoadError(IsokitError):
    """
    A failure that aborts the whole load.

    Parameters:
    -----------
    message : str
        Human readable description
    line : int, optional
        Line of the document where the failure was detected
    """
    kind = ErrorKind.MALFORMED_DOCUMENT

    def __init__(self, message: str, line: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.line = line

    def __str__(self) -> str:
        if self.line is not None:
            return f"line {self.line}: {self.message}"
        return self.message


class ResourceNotFound(MapLoadError):
    kind = ErrorKind.RESOURCE_NOT_FOUND


class UnreadableResource(MapLoadError):
    kind = ErrorKind.UNREADABLE_RESOURCE


class MalformedDocument(MapLoadError):
    kind = ErrorKind.MALFORMED_DOCUMENT


class MissingRequiredAttribute(MapLoadError):
    kind = ErrorKind.MISSING_REQUIRED_ATTRIBUTE


class UnsupportedOrientation(MapLoadError):
    kind = ErrorKind.UNSUPPORTED_ORIENTATION
