"""Block tree parser for unfolded ICS lines."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from .exceptions import ContextError, DocumentShapeError, IcsParseError, StructuralMismatchError
from .lines import ByteSource, unfold_lines
from .models import ROOT_BLOCK_TYPE, Block, Property, normalize_key

logger = logging.getLogger(__name__)

BEGIN_PREFIX = "BEGIN:"
END_PREFIX = "END:"


@dataclass
class _BlockBuilder:
    """Mutable, parser-local accumulator for a block that is still open."""

    type: str
    line_number: int
    properties: list[Property] = field(default_factory=list)
    children: list[Block] = field(default_factory=list)

    def build(self) -> Block:
        return Block(
            type=self.type,
            properties=tuple(self.properties),
            children=tuple(self.children),
        )


def parse_lines(lines: Iterable[str]) -> Block:
    """Build and validate the block tree for a sequence of logical lines.

    Args:
        lines: Unfolded logical lines

    Returns:
        The VCALENDAR root block

    Raises:
        StructuralMismatchError: BEGIN/END lines do not balance
        ContextError: A property appears outside any block
        DocumentShapeError: Not exactly one root, or the root is not VCALENDAR
        IcsParseError: Empty block type or a property line without ':'
    """
    stack: list[_BlockBuilder] = []
    roots: list[Block] = []
    line_number = 0

    for line_number, line in enumerate(lines, start=1):
        upline = normalize_key(line)

        if upline.startswith(BEGIN_PREFIX):
            block_type = line[len(BEGIN_PREFIX) :]
            if not block_type:
                raise IcsParseError("BEGIN without a block type", line_number)
            stack.append(_BlockBuilder(type=normalize_key(block_type), line_number=line_number))

        elif upline.startswith(END_PREFIX):
            block_type = normalize_key(line[len(END_PREFIX) :])
            if not stack:
                raise StructuralMismatchError(
                    f"END:{block_type} without a matching BEGIN", line_number
                )
            builder = stack.pop()
            if builder.type != block_type:
                raise StructuralMismatchError(
                    f"ended block type {block_type} but the open block is {builder.type}",
                    line_number,
                )
            # finalized blocks move into their parent; the builder is dropped
            block = builder.build()
            if stack:
                stack[-1].children.append(block)
            else:
                roots.append(block)

        else:
            if not stack:
                raise ContextError("property outside any block", line_number)
            key, sep, value = line.partition(":")
            if not sep:
                raise IcsParseError("property line without ':' separator", line_number)
            stack[-1].properties.append(Property(key=key, value=value))

    if stack:
        raise StructuralMismatchError(
            f"unterminated block {stack[-1].type} opened on line {stack[-1].line_number}"
        )
    if len(roots) != 1:
        raise DocumentShapeError(f"expected exactly one top-level block, found {len(roots)}")

    root = roots[0]
    if root.type != ROOT_BLOCK_TYPE:
        raise DocumentShapeError(f"not a calendar document: top-level block is {root.type}")

    logger.debug(
        "Parsed %d lines into %s with %d children", line_number, root.type, len(root.children)
    )
    return root


def parse_ics(source: ByteSource) -> Block:
    """Unfold and parse a raw ICS document."""
    return parse_lines(unfold_lines(source))
