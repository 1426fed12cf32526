"""Line unfolding and folding for ICS content.

Unfolding turns a raw byte stream into logical lines; folding wraps logical
lines back into width-bounded physical lines. Both work on bytes so that a
fold may fall inside a multi-byte UTF-8 character, which RFC 5545 allows.
"""

from collections.abc import Iterable, Iterator
from typing import BinaryIO, Union

from .exceptions import IcsDecodeError, LineTerminatorError

CR = 0x0D
LF = 0x0A
SPACE = 0x20

CRLF = b"\r\n"
FOLD_SEPARATOR = b"\r\n "

# RFC 5545 recommends folding at 75 octets
DEFAULT_FOLD_WIDTH = 75

DEFAULT_READ_CHUNK_SIZE_BYTES = 8192

ByteSource = Union[bytes, bytearray, BinaryIO, Iterable[bytes]]

# Unfolder states
_IN_LINE = 0  # collecting line content
_AFTER_CR = 1  # saw CR, LF must follow
_AFTER_CRLF = 2  # saw CRLF, next byte decides between continuation and new line


def _iter_chunks(source: ByteSource, chunk_size: int) -> Iterator[bytes]:
    if isinstance(source, (bytes, bytearray)):
        yield bytes(source)
        return
    read = getattr(source, "read", None)
    if callable(read):
        while True:
            chunk = read(chunk_size)
            if not chunk:
                return
            yield chunk
    else:
        yield from source


def _decode(line: bytearray, line_number: int) -> str:
    try:
        return line.decode("utf-8")
    except UnicodeDecodeError as e:
        raise IcsDecodeError(f"invalid UTF-8 in logical line: {e.reason}", line_number) from e


def unfold_lines(
    source: ByteSource, chunk_size: int = DEFAULT_READ_CHUNK_SIZE_BYTES
) -> Iterator[str]:
    """Yield logical lines from an ICS byte stream.

    Args:
        source: Raw bytes, a binary file object, or an iterable of byte chunks
        chunk_size: Read size used when ``source`` is a file object

    Yields:
        Logical lines with continuations joined and terminators removed.
        Empty logical lines are skipped.

    Raises:
        LineTerminatorError: A CR not followed by LF, or a lone LF
        IcsDecodeError: A logical line is not valid UTF-8
    """
    line = bytearray()
    state = _IN_LINE
    # physical line number, for error reporting
    line_number = 1

    for chunk in _iter_chunks(source, chunk_size):
        pos = 0
        size = len(chunk)
        while pos < size:
            if state == _AFTER_CRLF:
                line_number += 1
                if chunk[pos] == SPACE:
                    pos += 1
                else:
                    if line:
                        yield _decode(line, line_number - 1)
                    line = bytearray()
                state = _IN_LINE
                continue

            if state == _AFTER_CR:
                if chunk[pos] != LF:
                    raise LineTerminatorError(
                        "malformed line terminator: CR without LF", line_number
                    )
                pos += 1
                state = _AFTER_CRLF
                continue

            cr = chunk.find(b"\r", pos)
            lf = chunk.find(b"\n", pos)
            if lf != -1 and (cr == -1 or lf < cr):
                raise LineTerminatorError("malformed line terminator: LF without CR", line_number)
            if cr == -1:
                line += chunk[pos:]
                break
            line += chunk[pos:cr]
            pos = cr + 1
            state = _AFTER_CR

    if state == _AFTER_CR:
        raise LineTerminatorError("malformed line terminator: CR at end of input", line_number)
    if line:
        yield _decode(line, line_number)


def fold_lines(lines: Iterable[str], width: int = DEFAULT_FOLD_WIDTH) -> bytes:
    """Encode logical lines as CRLF-terminated, width-bounded physical lines.

    Each line is cut every ``width`` bytes of its UTF-8 encoding; continuation
    lines start with a single space. Cuts may split a multi-byte character.

    Args:
        lines: Logical lines, without terminators
        width: Maximum number of content bytes per physical line

    Returns:
        The folded document

    Raises:
        ValueError: If width is smaller than 1
    """
    if width < 1:
        raise ValueError(f"fold width must be positive, got {width}")

    out = bytearray()
    for line in lines:
        data = line.encode("utf-8")
        start = 0
        while len(data) - start > width:
            out += data[start : start + width]
            out += FOLD_SEPARATOR
            start += width
        out += data[start:]
        out += CRLF
    return bytes(out)
