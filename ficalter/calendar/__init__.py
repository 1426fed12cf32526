"""ICS format core: unfold, parse, filter, serialize and fold calendar documents."""

from .exceptions import (
    ContextError,
    DocumentShapeError,
    IcsDecodeError,
    IcsError,
    IcsParseError,
    LineTerminatorError,
    StructuralMismatchError,
)
from .filtering import SummaryFilter, filter_block
from .lines import DEFAULT_FOLD_WIDTH, fold_lines, unfold_lines
from .models import DEFAULT_SELECTOR, ROOT_BLOCK_TYPE, Block, Property, normalize_key
from .parser import parse_ics, parse_lines
from .serializer import serialize_block, to_ics

__all__ = [
    "DEFAULT_FOLD_WIDTH",
    "DEFAULT_SELECTOR",
    "ROOT_BLOCK_TYPE",
    "Block",
    "ContextError",
    "DocumentShapeError",
    "IcsDecodeError",
    "IcsError",
    "IcsParseError",
    "LineTerminatorError",
    "Property",
    "StructuralMismatchError",
    "SummaryFilter",
    "filter_block",
    "fold_lines",
    "normalize_key",
    "parse_ics",
    "parse_lines",
    "serialize_block",
    "to_ics",
    "unfold_lines",
]
