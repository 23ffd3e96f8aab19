"""
Commodore BASIC Support
=======================

Tokenized BASIC lines for the PRG header:

- **tokens**: token byte values and a detokenizer for listings
- **bootstrap**: the self-referential `SYS nnnn` autorun line and the
  static `PRINT "TEXT"` program
"""

from c64prg.basic.tokens import (
    TOKEN_SYS,
    TOKEN_PRINT,
    TOKEN_REM,
    TOKEN_NAMES,
    MAX_LINE_NUMBER,
    detokenize,
)
from c64prg.basic.bootstrap import (
    BasicLine,
    Bootstrap,
    BootstrapBuilder,
    SysAddressSolution,
    DEFAULT_LINE_NUMBER,
    MAX_FIXED_POINT_PASSES,
    PROGRAM_TERMINATOR,
    build_print_program,
    encode_program,
    solve_sys_address,
    validate_line_number,
    validate_load_address,
)

__all__ = [
    "TOKEN_SYS",
    "TOKEN_PRINT",
    "TOKEN_REM",
    "TOKEN_NAMES",
    "MAX_LINE_NUMBER",
    "detokenize",
    "BasicLine",
    "Bootstrap",
    "BootstrapBuilder",
    "SysAddressSolution",
    "DEFAULT_LINE_NUMBER",
    "MAX_FIXED_POINT_PASSES",
    "PROGRAM_TERMINATOR",
    "build_print_program",
    "encode_program",
    "solve_sys_address",
    "validate_line_number",
    "validate_load_address",
]
