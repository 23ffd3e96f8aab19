"""
PRG File Reader
===============

This module reads PRG files that start with a BASIC program, splitting
them into the load address, the linked BASIC lines and the machine code
that follows the program terminator.

It is used to inspect generated files and to check that the SYS address
in the autorun line names the first machine-code byte.

Usage
-----
    >>> prg = PrgFile.from_file("hello.prg")
    >>> prg.load_address
    2049
    >>> prg.lines[0].text()
    '10 SYS 2062'
    >>> prg.sys_address == prg.machine_code_address
    True
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union
import logging
import struct

from c64prg.basic.tokens import TOKEN_SYS, detokenize
from c64prg.errors import PrgFormatError

# Logger for this module
logger = logging.getLogger(__name__)


# =============================================================================
# Parsed BASIC Line
# =============================================================================

@dataclass(frozen=True)
class ParsedLine:
    """
    A BASIC line as found in a PRG file.

    Attributes:
        address: Absolute address of the line's link pointer
        next_address: Link pointer value (address of the following line)
        line_number: BASIC line number
        body: Tokenized content without the $00 terminator
    """
    address: int
    next_address: int
    line_number: int
    body: bytes

    def text(self) -> str:
        """Return the line in listing form, e.g. '10 SYS 2062'."""
        return f"{self.line_number} {detokenize(self.body)}"

    @property
    def sys_address(self) -> Optional[int]:
        """
        The decimal argument of the first SYS token, if any.

        Spaces between the token and the digits are skipped.
        """
        in_quotes = False
        for index, value in enumerate(self.body):
            if value == 0x22:
                in_quotes = not in_quotes
            elif value == TOKEN_SYS and not in_quotes:
                digits = self.body[index + 1:].lstrip(b" ")
                end = 0
                while end < len(digits) and 0x30 <= digits[end] <= 0x39:
                    end += 1
                if end == 0:
                    return None
                return int(digits[:end].decode("ascii"))
        return None


# =============================================================================
# PRG File
# =============================================================================

@dataclass
class PrgFile:
    """
    Parser for BASIC-headed PRG files.

    Attributes:
        data: The raw PRG file bytes
        load_address: Address the file loads at
        lines: Parsed BASIC lines in order
        basic_size: Bytes of BASIC program, including the program terminator
        machine_code: Bytes following the BASIC program
    """
    data: bytes = field(repr=False)
    load_address: int = 0
    lines: list[ParsedLine] = field(default_factory=list)
    basic_size: int = 0
    machine_code: bytes = field(default=b"", repr=False)

    def __post_init__(self) -> None:
        """Parse the file data after initialization."""
        self._parse()

    @classmethod
    def from_file(cls, filepath: Union[str, Path]) -> "PrgFile":
        """
        Read and parse a PRG file.

        Raises:
            FileNotFoundError: If the file doesn't exist
            PrgFormatError: If the file cannot be parsed
        """
        return cls(data=Path(filepath).read_bytes())

    @classmethod
    def from_bytes(cls, data: bytes) -> "PrgFile":
        """Parse PRG file contents."""
        return cls(data=bytes(data))

    # =========================================================================
    # Derived Values
    # =========================================================================

    @property
    def machine_code_address(self) -> int:
        """Absolute address of the first byte after the BASIC program."""
        return self.load_address + self.basic_size

    @property
    def sys_address(self) -> Optional[int]:
        """SYS argument of the first line that has one."""
        for line in self.lines:
            address = line.sys_address
            if address is not None:
                return address
        return None

    def sys_targets_machine_code(self) -> bool:
        """Return True if SYS jumps to the first machine-code byte."""
        return self.sys_address is not None and self.sys_address == self.machine_code_address

    def listing(self) -> list[str]:
        """Return the BASIC program as text lines."""
        return [line.text() for line in self.lines]

    # =========================================================================
    # Parsing
    # =========================================================================

    def _parse(self) -> None:
        data = self.data
        if len(data) < 2:
            raise PrgFormatError(f"PRG file too small: {len(data)} bytes")

        (self.load_address,) = struct.unpack_from("<H", data, 0)
        pos = 2

        while True:
            address = self.load_address + pos - 2
            if pos + 2 > len(data):
                raise PrgFormatError(
                    f"file ends at offset {len(data)} before the BASIC program terminator"
                )

            (link,) = struct.unpack_from("<H", data, pos)
            if link == 0:
                pos += 2
                break

            if link <= address:
                raise PrgFormatError(
                    f"BASIC link pointer ${link:04X} at ${address:04X} does not move forward"
                )
            if pos + 4 > len(data):
                raise PrgFormatError(f"truncated BASIC line at ${address:04X}")

            (line_number,) = struct.unpack_from("<H", data, pos + 2)
            end = data.find(b"\x00", pos + 4)
            if end < 0:
                raise PrgFormatError(f"BASIC line {line_number} at ${address:04X} is not terminated")

            expected = self.load_address + end + 1 - 2
            if link != expected:
                logger.warning(
                    f"Line {line_number}: link ${link:04X} does not match "
                    f"next line at ${expected:04X}"
                )

            self.lines.append(ParsedLine(
                address=address,
                next_address=link,
                line_number=line_number,
                body=data[pos + 4:end],
            ))
            logger.debug(f"Parsed BASIC line {line_number} at ${address:04X}")
            pos = end + 1

        self.basic_size = pos - 2
        self.machine_code = data[pos:]
        logger.debug(
            f"PRG: load ${self.load_address:04X}, {len(self.lines)} BASIC line(s), "
            f"{len(self.machine_code)} bytes of machine code"
        )
