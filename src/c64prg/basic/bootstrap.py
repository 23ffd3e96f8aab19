"""
BASIC Bootstrap Builder
=======================

This module builds the BASIC part of a PRG file: the one-line autorun
program `10 SYS nnnn` that jumps into the machine code, and the static
`10 PRINT "TEXT"` program used when no machine code is wanted.

The SYS Fixed Point
-------------------
The machine code starts right after the BASIC program, so the SYS
address depends on the length of the SYS line. The line, in turn,
contains the address as ASCII digits, so its length depends on the
number of digits in the address:

    line_length = overhead + digits
    sys_address = load_address + line_length + 2   (program terminator)

with `overhead` = link (2) + line number (2) + SYS token (1)
+ optional space (1) + line terminator (1).

Starting from an assumed single digit, the address is recomputed until
its digit count stops changing. The digit count only ever grows and can
cross at most one power of ten on the second correction, so for any
load address in $0000-$FFFF at most two corrections are needed. The
loop is bounded at MAX_FIXED_POINT_PASSES regardless.

Bootstrap Layout
----------------
```
Offset  Size  Description
------  ----  -----------
0       2     Link to the next line (load_address + line_length)
2       2     Line number
4       1     SYS token ($9E)
5       0/1   Space
5/6     n     ASCII decimal digits of the SYS address
...     1     $00 line terminator
...     2     $00 $00 program terminator
```
"""

from dataclasses import dataclass
from typing import Iterable, Optional
import logging
import struct

from c64prg.basic.tokens import MAX_LINE_NUMBER, TOKEN_PRINT, TOKEN_SYS
from c64prg.charset import to_petscii
from c64prg.errors import ConfigurationError, LayoutOverflowError

# Logger for this module
logger = logging.getLogger(__name__)

# Per-line byte counts
LINK_SIZE = 2
LINE_NUMBER_SIZE = 2
TOKEN_SIZE = 1
SEPARATOR_SIZE = 1
LINE_TERMINATOR_SIZE = 1

# A zero link pointer marks the end of the program
PROGRAM_TERMINATOR = b"\x00\x00"

# Upper bound on fixed-point passes; two corrections always suffice
MAX_FIXED_POINT_PASSES = 5

DEFAULT_LINE_NUMBER = 10


# =============================================================================
# Validation Helpers
# =============================================================================

def validate_load_address(address: int) -> None:
    """
    Check that a load address fits in 16 bits.

    Raises:
        ConfigurationError: If the address is outside $0000-$FFFF
    """
    if not 0 <= address <= 0xFFFF:
        raise ConfigurationError(f"load address {address} is outside $0000-$FFFF")


def validate_line_number(line_number: int) -> None:
    """
    Check a BASIC line number.

    Raises:
        ConfigurationError: If the number is outside 0-63999
    """
    if not 0 <= line_number <= MAX_LINE_NUMBER:
        raise ConfigurationError(
            f"BASIC line number {line_number} is outside 0-{MAX_LINE_NUMBER}"
        )


# =============================================================================
# BASIC Line Encoding
# =============================================================================

@dataclass(frozen=True)
class BasicLine:
    """
    One tokenized BASIC line.

    Attributes:
        line_number: BASIC line number (0-63999)
        body: Tokenized line content, without the $00 terminator
    """
    line_number: int
    body: bytes

    def __post_init__(self) -> None:
        validate_line_number(self.line_number)
        if 0 in self.body:
            raise ValueError("BASIC line body cannot contain a $00 byte")

    @property
    def size(self) -> int:
        """Encoded size in bytes, including link, number and terminator."""
        return LINK_SIZE + LINE_NUMBER_SIZE + len(self.body) + LINE_TERMINATOR_SIZE

    def encode(self, address: int) -> bytes:
        """
        Encode the line for placement at an absolute address.

        The link pointer is the address of the following line.
        """
        link = address + self.size
        return struct.pack("<HH", link, self.line_number) + self.body + b"\x00"


def encode_program(load_address: int, lines: Iterable[BasicLine]) -> bytes:
    """
    Encode a BASIC program placed at load_address.

    Returns the linked lines followed by the program terminator.
    """
    result = bytearray()
    address = load_address
    for line in lines:
        result.extend(line.encode(address))
        address += line.size
    result.extend(PROGRAM_TERMINATOR)
    return bytes(result)


# =============================================================================
# SYS Address Fixed Point
# =============================================================================

@dataclass(frozen=True)
class SysAddressSolution:
    """
    Result of the digit-count fixed point.

    Attributes:
        address: The SYS address (first machine-code byte)
        digits: Decimal digit count of the address
        corrections: How many times the assumed digit count changed
    """
    address: int
    digits: int
    corrections: int


def solve_sys_address(load_address: int, line_overhead: int) -> SysAddressSolution:
    """
    Find the SYS address whose digit count matches the line it sits in.

    Args:
        load_address: Address the BASIC program is loaded at
        line_overhead: Bytes of the SYS line other than the digits

    Returns:
        The stable SysAddressSolution (the address is not range-checked)

    Raises:
        LayoutOverflowError: If the digit count does not settle within
                             MAX_FIXED_POINT_PASSES passes
    """
    digits = 1
    corrections = 0
    for _ in range(MAX_FIXED_POINT_PASSES):
        candidate = load_address + (line_overhead + digits) + len(PROGRAM_TERMINATOR)
        measured = len(str(candidate))
        logger.debug(f"SYS fixed point: {digits} digit(s) -> {candidate} ({measured} digits)")
        if measured == digits:
            return SysAddressSolution(candidate, digits, corrections)
        digits = measured
        corrections += 1

    raise LayoutOverflowError(
        f"SYS address digit count did not converge within {MAX_FIXED_POINT_PASSES} passes "
        f"(load address ${load_address:04X}, line overhead {line_overhead})"
    )


# =============================================================================
# Bootstrap Builder
# =============================================================================

@dataclass(frozen=True)
class Bootstrap:
    """
    A built BASIC bootstrap.

    Attributes:
        data: Encoded program bytes (line plus program terminator)
        load_address: Address the program is loaded at
        sys_address: Address named by SYS, or None for a PRINT program
        line: The encoded BASIC line
        corrections: Digit-count corrections the fixed point needed
    """
    data: bytes
    load_address: int
    sys_address: Optional[int]
    line: BasicLine
    corrections: int = 0

    def __len__(self) -> int:
        return len(self.data)

    @property
    def end_address(self) -> int:
        """Address one past the program terminator."""
        return self.load_address + len(self.data)


class BootstrapBuilder:
    """
    Builds the `SYS nnnn` autorun line for a given load address.

    Usage:
        >>> bootstrap = BootstrapBuilder(0x0801).build()
        >>> bootstrap.sys_address
        2062
        >>> len(bootstrap)
        13
    """

    def __init__(
        self,
        load_address: int,
        line_number: int = DEFAULT_LINE_NUMBER,
        sys_token: int = TOKEN_SYS,
        space_after_token: bool = True,
    ):
        validate_load_address(load_address)
        validate_line_number(line_number)
        self.load_address = load_address
        self.line_number = line_number
        self.sys_token = sys_token
        self.space_after_token = space_after_token

    @property
    def line_overhead(self) -> int:
        """Bytes of the SYS line other than the address digits."""
        separator = SEPARATOR_SIZE if self.space_after_token else 0
        return LINK_SIZE + LINE_NUMBER_SIZE + TOKEN_SIZE + separator + LINE_TERMINATOR_SIZE

    def build(self) -> Bootstrap:
        """
        Build the bootstrap bytes.

        Raises:
            LayoutOverflowError: If the fixed point fails or the machine
                                 code would start above $FFFF
        """
        solution = solve_sys_address(self.load_address, self.line_overhead)
        if solution.address > 0xFFFF:
            raise LayoutOverflowError(
                f"machine code would start at {solution.address}, above $FFFF",
                hint=f"load address ${self.load_address:04X} is too high for an autorun header",
            )

        body = bytes([self.sys_token])
        if self.space_after_token:
            body += b" "
        body += str(solution.address).encode("ascii")

        line = BasicLine(self.line_number, body)
        data = encode_program(self.load_address, [line])

        if self.load_address + len(data) != solution.address:
            raise LayoutOverflowError(
                f"bootstrap ends at {self.load_address + len(data)} "
                f"but SYS names {solution.address}"
            )

        logger.debug(
            f"Bootstrap: {len(data)} bytes, SYS {solution.address} "
            f"after {solution.corrections} correction(s)"
        )
        return Bootstrap(
            data=data,
            load_address=self.load_address,
            sys_address=solution.address,
            line=line,
            corrections=solution.corrections,
        )


def build_print_program(
    load_address: int,
    text: str,
    line_number: int = DEFAULT_LINE_NUMBER,
    print_token: int = TOKEN_PRINT,
    space_after_token: bool = True,
) -> Bootstrap:
    """
    Build a static `PRINT "TEXT"` BASIC program.

    No machine code follows this program, so there is no SYS address
    and no fixed point to solve.

    Raises:
        CharacterEncodingError: If the text cannot appear in a BASIC string
        LayoutOverflowError: If the program runs past $FFFF
    """
    validate_load_address(load_address)
    body = bytes([print_token])
    if space_after_token:
        body += b" "
    body += b'"' + to_petscii(text) + b'"'
    line = BasicLine(line_number, body)

    size = line.size + len(PROGRAM_TERMINATOR)
    if load_address + size - 1 > 0xFFFF:
        raise LayoutOverflowError(
            f"PRINT program of {size} bytes at ${load_address:04X} runs past $FFFF"
        )
    data = encode_program(load_address, [line])
    logger.debug(f"PRINT program: {len(data)} bytes")
    return Bootstrap(data=data, load_address=load_address, sys_address=None, line=line)
