"""Block tree serialization back to ICS lines and bytes."""

from .lines import DEFAULT_FOLD_WIDTH, fold_lines
from .models import Block


def serialize_block(block: Block) -> list[str]:
    """Return the logical lines for ``block`` in pre-order, without folding."""
    lines: list[str] = []
    _append_block(block, lines)
    return lines


def _append_block(block: Block, lines: list[str]) -> None:
    lines.append(f"BEGIN:{block.type}")
    lines.extend(prop.to_line() for prop in block.properties)
    for child in block.children:
        _append_block(child, lines)
    lines.append(f"END:{block.type}")


def to_ics(block: Block, width: int = DEFAULT_FOLD_WIDTH) -> bytes:
    """Serialize and fold ``block`` into a complete ICS document."""
    return fold_lines(serialize_block(block), width)
