"""
PRG Generator
=============

This module ties the layout engine together into a complete program:

1. Emission: the message routine is emitted into a CodeEmitter. Label
   offsets are buffer-relative and absolute operands become fixups.
2. Bootstrap: the `SYS nnnn` line is built; its length fixes the
   address of the first machine-code byte.
3. Resolution: the Resolver patches every fixup against that address.
4. Packaging: load address + bootstrap + code become the PRG image.

Message Routine
---------------
```
        JSR clear_screen        ; ROM screen clear
        LDX #$00
loop:   LDA message,X           ; forward absolute fixup
        BEQ done                ; forward relative fixup
        STA screen,X
        INX
        JMP loop                ; backward absolute fixup
done:   JMP wait_key            ; forward absolute fixup
message:
        .TEXT "...",0           ; screen codes, zero-terminated
wait_key:
        JSR GETIN
        CMP #$00
        BEQ wait_key            ; backward branch, encoded immediately
        RTS
```

The X register indexes the message, so the text is limited to 255
characters. The static PRINT shape skips steps 1 and 3 and writes a
one-line BASIC program instead.

Usage
-----
    >>> from c64prg import generate_prg
    >>> data = generate_prg("HELLO, WORLD!")
    >>> data[:2]
    b'\\x01\\x08'

    >>> generator = PrgGenerator(machine="vic20")
    >>> program = generator.generate("HELLO")
    >>> program.write("hello.prg")
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union
import logging

from c64prg.assembler import CodeEmitter, Resolver, format_listing
from c64prg.basic.bootstrap import (
    DEFAULT_LINE_NUMBER,
    Bootstrap,
    BootstrapBuilder,
    build_print_program,
    validate_load_address,
)
from c64prg.basic.tokens import detokenize
from c64prg.charset import to_screen_codes
from c64prg.config import DEFAULT_MESSAGE, GeneratorConfig, ProgramShape
from c64prg.cpu import AddressingMode
from c64prg.errors import CharacterEncodingError, MessageTooLongError
from c64prg.machines import DEFAULT_MACHINE, MachineProfile, get_machine
from c64prg.prg.packager import package, write_prg

# Logger for this module
logger = logging.getLogger(__name__)

# Labels of the message routine
LABEL_LOOP = "loop"
LABEL_DONE = "done"
LABEL_MESSAGE = "message"
LABEL_WAIT_KEY = "wait_key"

# The print loop indexes the message with the 8-bit X register
MAX_MESSAGE_LENGTH = 255

# Message terminator; the print loop stops when it loads this byte
MESSAGE_TERMINATOR = 0x00


# =============================================================================
# Message Routine Emission
# =============================================================================

def emit_message_routine(
    emitter: CodeEmitter,
    machine: MachineProfile,
    message: str,
) -> None:
    """
    Emit the clear-screen / print / wait-for-key routine.

    Args:
        emitter: Emitter to append to (left open; the caller finishes it)
        machine: Machine profile supplying ROM and screen addresses
        message: Message text, converted to screen codes

    Raises:
        MessageTooLongError: If the message exceeds MAX_MESSAGE_LENGTH
        CharacterEncodingError: If the message cannot be converted
    """
    if len(message) > MAX_MESSAGE_LENGTH:
        raise MessageTooLongError(len(message), MAX_MESSAGE_LENGTH)
    screen_codes = to_screen_codes(message)
    position = screen_codes.find(MESSAGE_TERMINATOR)
    if position >= 0:
        raise CharacterEncodingError(
            message[position], position, "message text (screen code 0 ends the message)"
        )

    emitter.emit_instruction("JSR", AddressingMode.ABSOLUTE, machine.clear_screen_routine)
    emitter.emit_instruction("LDX", AddressingMode.IMMEDIATE, 0x00)

    emitter.mark_label(LABEL_LOOP)
    emitter.emit_instruction("LDA", AddressingMode.ABSOLUTE_X, LABEL_MESSAGE)
    emitter.emit_instruction("BEQ", AddressingMode.RELATIVE, LABEL_DONE)
    emitter.emit_instruction("STA", AddressingMode.ABSOLUTE_X, machine.screen_address)
    emitter.emit_instruction("INX")
    emitter.emit_instruction("JMP", AddressingMode.ABSOLUTE, LABEL_LOOP)

    emitter.mark_label(LABEL_DONE)
    emitter.emit_instruction("JMP", AddressingMode.ABSOLUTE, LABEL_WAIT_KEY)

    emitter.mark_label(LABEL_MESSAGE)
    text = f'.TEXT "{message}",0' if message else ".BYTE 0"
    emitter.emit(screen_codes + bytes([MESSAGE_TERMINATOR]), text=text)

    emitter.mark_label(LABEL_WAIT_KEY)
    emitter.emit_instruction("JSR", AddressingMode.ABSOLUTE, machine.getin_routine)
    emitter.emit_instruction("CMP", AddressingMode.IMMEDIATE, 0x00)
    emitter.emit_instruction("BEQ", AddressingMode.RELATIVE, LABEL_WAIT_KEY)
    emitter.emit_instruction("RTS")


# =============================================================================
# Generation Result
# =============================================================================

@dataclass(frozen=True)
class GeneratedProgram:
    """
    A generated PRG image and the layout that produced it.

    Attributes:
        data: Complete PRG file contents
        shape: Program shape that was built
        machine: Target machine profile
        bootstrap: The BASIC part
        code: Resolved machine code (empty for the PRINT shape)
        base_address: Address of the first code byte (None for PRINT)
        symbols: Label name -> absolute address
        listing: Human-readable listing
    """
    data: bytes = field(repr=False)
    shape: ProgramShape
    machine: MachineProfile
    bootstrap: Bootstrap
    code: bytes = field(default=b"", repr=False)
    base_address: Optional[int] = None
    symbols: dict[str, int] = field(default_factory=dict)
    listing: str = field(default="", repr=False)

    def __len__(self) -> int:
        return len(self.data)

    @property
    def load_address(self) -> int:
        return self.bootstrap.load_address

    def write(self, filepath: Union[str, Path]) -> int:
        """Write the PRG image; returns the number of bytes written."""
        return write_prg(filepath, self.data)


# =============================================================================
# Generator
# =============================================================================

class PrgGenerator:
    """
    Builds PRG images for one machine and load address.

    A generator holds configuration only; each generate() call runs a
    fresh emission and resolution, so calls are independent and
    identical inputs produce identical bytes.

    Usage:
        generator = PrgGenerator(machine="c64")
        program = generator.generate("HELLO, WORLD!")
        program.write("hello.prg")
    """

    def __init__(
        self,
        machine: Union[MachineProfile, str] = DEFAULT_MACHINE,
        load_address: Optional[int] = None,
        line_number: int = DEFAULT_LINE_NUMBER,
        space_after_token: bool = True,
    ):
        """
        Initialize the generator.

        Args:
            machine: Machine profile or profile name
            load_address: Load address override (default: machine's BASIC start)
            line_number: BASIC line number of the generated line
            space_after_token: Put a space after SYS/PRINT

        Raises:
            ConfigurationError: For an unknown machine or an invalid address
        """
        self.machine = get_machine(machine) if isinstance(machine, str) else machine
        self.load_address = (
            load_address if load_address is not None else self.machine.load_address
        )
        validate_load_address(self.load_address)
        self.line_number = line_number
        self.space_after_token = space_after_token

    @classmethod
    def from_config(cls, config: GeneratorConfig) -> "PrgGenerator":
        """Create a generator from a validated GeneratorConfig."""
        config.validate()
        return cls(
            machine=config.profile,
            load_address=config.load_address,
            line_number=config.line_number,
            space_after_token=config.space_after_token,
        )

    def generate(
        self,
        message: str = DEFAULT_MESSAGE,
        shape: ProgramShape = ProgramShape.MESSAGE,
    ) -> GeneratedProgram:
        """
        Generate a PRG image.

        Args:
            message: Text to display
            shape: MESSAGE (machine code) or PRINT (BASIC only)

        Returns:
            The GeneratedProgram

        Raises:
            PrgError: Any layout, message or configuration error; nothing
                      is returned or written when one is raised
        """
        shape = ProgramShape(shape)
        logger.debug(
            f"Generating {shape.value} program for {self.machine.name} "
            f"at ${self.load_address:04X}"
        )
        if shape is ProgramShape.PRINT:
            return self._generate_print(message)
        return self._generate_message(message)

    def _generate_message(self, message: str) -> GeneratedProgram:
        # Pass 1: emission
        emitter = CodeEmitter()
        emit_message_routine(emitter, self.machine, message)
        emitter.finish()

        # Bootstrap fixes the base address
        bootstrap = BootstrapBuilder(
            self.load_address,
            line_number=self.line_number,
            sys_token=self.machine.sys_token,
            space_after_token=self.space_after_token,
        ).build()

        # Pass 2: resolution
        resolved = Resolver(emitter, self.load_address).resolve(len(bootstrap))

        data = package(self.load_address, bootstrap.data, resolved.code)
        listing = "\n".join([
            f"BASIC ${self.load_address:04X}: {self._line_text(bootstrap)}",
            "",
            format_listing(
                resolved.code,
                resolved.base_address,
                emitter.listing,
                resolved.symbols,
                title=f"{self.machine.description} machine code",
            ),
        ])

        logger.info(
            f"Generated {len(data)} bytes: SYS {bootstrap.sys_address}, "
            f"{len(resolved.code)} bytes of machine code"
        )
        return GeneratedProgram(
            data=data,
            shape=ProgramShape.MESSAGE,
            machine=self.machine,
            bootstrap=bootstrap,
            code=resolved.code,
            base_address=resolved.base_address,
            symbols=resolved.symbols,
            listing=listing,
        )

    def _generate_print(self, message: str) -> GeneratedProgram:
        bootstrap = build_print_program(
            self.load_address,
            message,
            line_number=self.line_number,
            print_token=self.machine.print_token,
            space_after_token=self.space_after_token,
        )
        data = package(self.load_address, bootstrap.data)
        logger.info(f"Generated {len(data)} bytes: {self._line_text(bootstrap)}")
        return GeneratedProgram(
            data=data,
            shape=ProgramShape.PRINT,
            machine=self.machine,
            bootstrap=bootstrap,
            listing=f"BASIC ${self.load_address:04X}: {self._line_text(bootstrap)}",
        )

    @staticmethod
    def _line_text(bootstrap: Bootstrap) -> str:
        return f"{bootstrap.line.line_number} {detokenize(bootstrap.line.body)}"


def generate_prg(
    message: str = DEFAULT_MESSAGE,
    machine: Union[MachineProfile, str] = DEFAULT_MACHINE,
    shape: ProgramShape = ProgramShape.MESSAGE,
    **options,
) -> bytes:
    """
    Generate PRG file contents in one call.

    Args:
        message: Text to display
        machine: Machine profile or name
        shape: Program shape
        **options: load_address, line_number, space_after_token

    Returns:
        The PRG image bytes
    """
    return PrgGenerator(machine=machine, **options).generate(message, shape).data
