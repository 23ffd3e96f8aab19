"""
c64prg Error Hierarchy
======================

This module defines the exception hierarchy for the whole package.
All exceptions inherit from PrgError, allowing callers to catch every
generator-related error with a single except clause if desired.

Exception Hierarchy
-------------------
PrgError (base)
├── LayoutError (two-pass layout engine)
│   ├── LayoutOverflowError - bootstrap fixed point or code image overflow
│   ├── BranchRangeExceededError - relative branch target too far
│   ├── UnresolvedLabelError - fixup refers to a label never emitted
│   ├── DuplicateLabelError - label defined twice
│   ├── EmitterFrozenError - emission after the buffer was frozen
│   └── EmitterNotFinishedError - resolution before the buffer was frozen
├── MessageError (message text)
│   ├── CharacterEncodingError - character has no target encoding
│   └── MessageTooLongError - message does not fit the print loop
├── ConfigurationError - invalid machine, address or line number
├── PrgFormatError - malformed PRG file while reading
└── OutputWriteError - destination file cannot be written

Every error is fatal to the current generation run. Generation is
deterministic, so retrying with identical input yields the same error.

Error messages follow this format:
    error: description
    hint: suggestion for fixing (when available)
"""

from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class PrgError(Exception):
    """
    Base exception for all c64prg errors.

        try:
            data = generate_prg("HELLO")
        except PrgError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Layout Engine Exceptions
# =============================================================================

class LayoutError(PrgError):
    """
    Base exception for errors raised by the layout engine.

    Attributes:
        message: The error description
        hint: A suggestion for fixing the error (optional)
    """

    def __init__(self, message: str, hint: Optional[str] = None):
        self.message = message
        self.hint = hint
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """
        Format the error message with the optional hint.

        Example output:
            error: branch to 'done' at offset $0008 is out of range (offset: 200)
            hint: branch offset is 200, but range is -128 to +127
        """
        parts = [f"error: {self.message}"]
        if self.hint:
            parts.append(f"hint: {self.hint}")
        return "\n".join(parts)


class LayoutOverflowError(LayoutError):
    """
    The program layout does not fit.

    Raised when the bootstrap digit-count fixed point fails to converge
    within its pass limit, or when an address in the finished image
    would exceed the 16-bit address space.
    """
    pass


class BranchRangeExceededError(LayoutError):
    """
    Relative branch target is out of range.

    6502 branch instructions use PC-relative addressing with a signed
    8-bit offset, limiting the range to -128 to +127 bytes from the
    instruction following the branch. The value is never truncated.
    """

    def __init__(self, target: str, offset: int, site: int):
        self.target = target
        self.offset = offset
        self.site = site

        direction = "forward" if offset > 0 else "backward"
        hint = (
            f"branch offset is {offset}, but range is -128 to +127; "
            f"use JMP for {direction} references this far"
        )

        super().__init__(
            f"branch to '{target}' at offset ${site:04X} is out of range "
            f"(offset: {offset})",
            hint=hint,
        )


class UnresolvedLabelError(LayoutError):
    """
    A fixup references a label that was never emitted.

    This is an internal consistency failure of a program shape, not a
    user error: every shape must define each label it references.
    """

    def __init__(self, label: str, site: Optional[int] = None):
        self.label = label
        self.site = site

        if site is None:
            message = f"undefined label '{label}'"
        else:
            message = f"fixup at offset ${site:04X} refers to undefined label '{label}'"
        super().__init__(message)


class DuplicateLabelError(LayoutError):
    """Label defined more than once in the same emission pass."""

    def __init__(self, label: str, original_offset: int, offset: int):
        self.label = label
        self.original_offset = original_offset
        self.offset = offset

        super().__init__(
            f"duplicate label '{label}' at offset ${offset:04X}",
            hint=f"'{label}' was first defined at offset ${original_offset:04X}",
        )


class EmitterFrozenError(LayoutError):
    """Bytes or labels were added after emission was finished."""
    pass


class EmitterNotFinishedError(LayoutError):
    """Resolution was requested before emission was finished."""
    pass


# =============================================================================
# Message Exceptions
# =============================================================================

class MessageError(PrgError):
    """Base exception for problems with the message text."""
    pass


class CharacterEncodingError(MessageError):
    """
    A character cannot be represented in the target encoding.

    Attributes:
        character: The offending character
        position: Index of the character in the input text
    """

    def __init__(self, character: str, position: int, encoding: str):
        self.character = character
        self.position = position
        self.encoding = encoding
        super().__init__(
            f"character {character!r} at position {position} "
            f"cannot be encoded as {encoding}"
        )


class MessageTooLongError(MessageError):
    """
    The message is longer than the print loop can index.

    The print loop walks the message with the X register, so the text
    (without its terminator) is limited to 255 characters.
    """

    def __init__(self, length: int, limit: int):
        self.length = length
        self.limit = limit
        super().__init__(
            f"message is {length} characters long, limit is {limit}"
        )


# =============================================================================
# Configuration, Format and Output Exceptions
# =============================================================================

class ConfigurationError(PrgError):
    """
    Invalid generator configuration.

    Raised for unknown machine names, load addresses outside 0-$FFFF,
    and BASIC line numbers outside 0-63999.
    """
    pass


class PrgFormatError(PrgError):
    """
    Invalid PRG file format.

    Raised when reading a PRG file that:
    - Is shorter than its load address
    - Has a BASIC link pointer that does not move forward
    - Has a BASIC line without its terminator
    - Ends before the BASIC program terminator
    """
    pass


class OutputWriteError(PrgError):
    """
    The destination file cannot be created or written.

    Attributes:
        path: The destination that failed
    """

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"cannot write '{path}': {reason}")
