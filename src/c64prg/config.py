"""
Generator Configuration
=======================

Configuration for a generation run. Values can come from:
- Default values (defined here)
- Environment variables (GeneratorConfig.from_env)
- Command-line options (applied by the CLI on top of the above)

Environment variables (all optional):
    C64PRG_MACHINE: Machine profile name (e.g., "c64", "vic20")
    C64PRG_LOAD_ADDRESS: Load address ($0801, 0x0801 or 2049)
    C64PRG_LINE_NUMBER: BASIC line number of the autorun line
    C64PRG_MESSAGE: Message text
    C64PRG_OUTPUT: Output file path
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional
import os

from c64prg.basic.bootstrap import (
    DEFAULT_LINE_NUMBER,
    validate_line_number,
    validate_load_address,
)
from c64prg.errors import ConfigurationError
from c64prg.machines import DEFAULT_MACHINE, MachineProfile, get_machine

DEFAULT_MESSAGE = "HELLO, WORLD!"
DEFAULT_OUTPUT = "hello.prg"


class ProgramShape(str, Enum):
    """
    Which program the generator builds.

    MESSAGE: SYS autorun line + machine code that clears the screen,
             writes the message to screen memory and waits for a key
    PRINT:   a single BASIC line `PRINT "TEXT"`, no machine code
    """
    MESSAGE = "message"
    PRINT = "print"


def parse_address(text: str) -> int:
    """
    Parse an address in $hex, 0xhex or decimal form.

    Raises:
        ConfigurationError: If the text is not a number or is outside 0-$FFFF
    """
    value_str = text.strip()
    try:
        if value_str.startswith("$"):
            value = int(value_str[1:], 16)
        elif value_str.lower().startswith("0x"):
            value = int(value_str[2:], 16)
        else:
            value = int(value_str)
    except ValueError:
        raise ConfigurationError(f"invalid address '{text}'") from None

    validate_load_address(value)
    return value


@dataclass
class GeneratorConfig:
    """
    Settings for one generation run.

    Attributes:
        machine: Machine profile name
        load_address: Load address override (None = machine default)
        line_number: BASIC line number for the generated line
        space_after_token: Put a space between the token and its argument
        message: Text to display
        shape: Program shape to build
        output: Output file path
    """
    machine: str = DEFAULT_MACHINE
    load_address: Optional[int] = None
    line_number: int = DEFAULT_LINE_NUMBER
    space_after_token: bool = True
    message: str = DEFAULT_MESSAGE
    shape: ProgramShape = ProgramShape.MESSAGE
    output: Path = field(default_factory=lambda: Path(DEFAULT_OUTPUT))

    @classmethod
    def from_env(cls) -> "GeneratorConfig":
        """
        Create a GeneratorConfig from environment variables.

        Raises:
            ConfigurationError: If a variable holds an invalid value
        """
        config = cls()

        if machine := os.environ.get("C64PRG_MACHINE"):
            config.machine = machine

        if address := os.environ.get("C64PRG_LOAD_ADDRESS"):
            config.load_address = parse_address(address)

        if line := os.environ.get("C64PRG_LINE_NUMBER"):
            try:
                config.line_number = int(line)
            except ValueError:
                raise ConfigurationError(f"invalid C64PRG_LINE_NUMBER '{line}'") from None

        if (message := os.environ.get("C64PRG_MESSAGE")) is not None:
            config.message = message

        if output := os.environ.get("C64PRG_OUTPUT"):
            config.output = Path(output)

        return config

    @property
    def profile(self) -> MachineProfile:
        """The machine profile named by `machine`."""
        return get_machine(self.machine)

    @property
    def effective_load_address(self) -> int:
        """The load address override, or the machine's BASIC start."""
        if self.load_address is not None:
            return self.load_address
        return self.profile.load_address

    def validate(self) -> None:
        """
        Check the configuration.

        Raises:
            ConfigurationError: For an unknown machine, an address outside
                                0-$FFFF or a line number outside 0-63999
        """
        get_machine(self.machine)
        if self.load_address is not None:
            validate_load_address(self.load_address)
        validate_line_number(self.line_number)
