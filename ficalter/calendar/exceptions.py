"""Exception hierarchy for the ICS format core.

Every failure of the unfold/parse pipeline is terminal for the document being
processed; callers never receive a partially built tree.
"""

from typing import Optional


class IcsError(Exception):
    """Base exception for all ICS format errors.

    Carries the 1-based line number the error was detected on, when known.
    """

    def __init__(self, message: str, line_number: Optional[int] = None):
        if line_number is not None:
            message = f"{message} (line {line_number})"
        super().__init__(message)
        self.line_number = line_number


class LineTerminatorError(IcsError):
    """Raised when a CR is not immediately followed by LF, or a lone LF is found."""


class IcsDecodeError(IcsError):
    """Raised when a logical line is not valid UTF-8."""


class IcsParseError(IcsError):
    """Base exception for errors building the block tree."""


class StructuralMismatchError(IcsParseError):
    """BEGIN/END lines do not balance.

    Raised when:
    - an END type differs from the innermost open BEGIN type
    - an END appears with no open block
    - input ends while blocks are still open
    """


class ContextError(IcsParseError):
    """A property line appeared with no open block."""


class DocumentShapeError(IcsParseError):
    """The document does not consist of exactly one VCALENDAR root block."""
