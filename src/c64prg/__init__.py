"""
c64prg - Autorun PRG Generator for Commodore 8-bit Machines
===========================================================

This package builds loadable PRG files for the Commodore 64 and VIC-20:
a one-line BASIC autorun header (`10 SYS nnnn`) followed by 6502 machine
code that clears the screen, shows a message and waits for a key.

The address in the SYS line depends on the length of the SYS line
itself, and the machine code refers to its own labels by absolute
address, so the program is laid out in two passes:

Main Components
---------------
- **assembler**: two-pass layout engine
    CodeEmitter and LabelTable record code, labels and fixup sites;
    Resolver patches the fixups once the base address is known

- **basic**: BASIC line encoding
    BootstrapBuilder solves the SYS digit-count fixed point

- **prg**: PRG file packaging and reading

- **machines**: per-machine ROM, screen and BASIC constants

Quick Start
-----------
Generate a PRG:
    >>> from c64prg import generate_prg
    >>> data = generate_prg("HELLO, WORLD!")
    >>> Path("hello.prg").write_bytes(data)

With more control:
    >>> from c64prg import PrgGenerator
    >>> program = PrgGenerator(machine="vic20").generate("HELLO")
    >>> print(program.listing)
    >>> program.write("hello20.prg")

Read a PRG back:
    >>> from c64prg import PrgFile
    >>> prg = PrgFile.from_file("hello.prg")
    >>> prg.sys_address == prg.machine_code_address
    True

Or use the command-line tool:
    $ c64prg create -m "HELLO, WORLD!" -o hello.prg
    $ c64prg info hello.prg
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from c64prg.errors import (
    PrgError,
    LayoutError,
    LayoutOverflowError,
    BranchRangeExceededError,
    UnresolvedLabelError,
    DuplicateLabelError,
    EmitterFrozenError,
    EmitterNotFinishedError,
    MessageError,
    CharacterEncodingError,
    MessageTooLongError,
    ConfigurationError,
    PrgFormatError,
    OutputWriteError,
)
from c64prg.assembler import (
    CodeEmitter,
    FixupKind,
    FixupSite,
    Label,
    LabelTable,
    Resolver,
    ResolvedCode,
    format_listing,
)
from c64prg.basic import (
    BasicLine,
    Bootstrap,
    BootstrapBuilder,
    build_print_program,
    solve_sys_address,
)
from c64prg.charset import to_petscii, to_screen_codes
from c64prg.config import GeneratorConfig, ProgramShape, parse_address
from c64prg.machines import MACHINES, MachineProfile, get_machine
from c64prg.prg import PrgFile, package, write_prg
from c64prg.generator import (
    GeneratedProgram,
    PrgGenerator,
    emit_message_routine,
    generate_prg,
)

__all__ = [
    # Version info
    "__version__",
    # Exception hierarchy
    "PrgError",
    "LayoutError",
    "LayoutOverflowError",
    "BranchRangeExceededError",
    "UnresolvedLabelError",
    "DuplicateLabelError",
    "EmitterFrozenError",
    "EmitterNotFinishedError",
    "MessageError",
    "CharacterEncodingError",
    "MessageTooLongError",
    "ConfigurationError",
    "PrgFormatError",
    "OutputWriteError",
    # Layout engine
    "CodeEmitter",
    "FixupKind",
    "FixupSite",
    "Label",
    "LabelTable",
    "Resolver",
    "ResolvedCode",
    "format_listing",
    # BASIC
    "BasicLine",
    "Bootstrap",
    "BootstrapBuilder",
    "build_print_program",
    "solve_sys_address",
    # Character encoding
    "to_petscii",
    "to_screen_codes",
    # Configuration and machines
    "GeneratorConfig",
    "ProgramShape",
    "parse_address",
    "MACHINES",
    "MachineProfile",
    "get_machine",
    # PRG files
    "PrgFile",
    "package",
    "write_prg",
    # Generator
    "GeneratedProgram",
    "PrgGenerator",
    "emit_message_routine",
    "generate_prg",
]
