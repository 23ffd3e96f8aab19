"""
MOS 6502 Instruction Subset
===========================

This module defines the 6502 instructions the program shapes are built
from, with opcodes, addressing modes and instruction sizes. It is not a
complete instruction set: the generator emits a fixed routine, so only
the encodings that routine (and its tests) need are listed.

The 6502 uses little-endian byte ordering (least significant byte first)
for 16-bit operands.

Addressing Modes
----------------
1. **IMPLIED**: No operand (e.g., INX, RTS)
   - 1 byte instruction
   - Example: RTS -> $60

2. **IMMEDIATE**: Literal byte follows opcode (e.g., LDX #$00)
   - 2 bytes
   - Example: CMP #$00 -> $C9 $00

3. **ABSOLUTE**: Full 16-bit address
   - 3 bytes: opcode + low byte + high byte
   - Example: JSR $E544 -> $20 $44 $E5

4. **ABSOLUTE_X**: 16-bit base address + X register
   - 3 bytes: opcode + low byte + high byte
   - Example: STA $0400,X -> $9D $00 $04

5. **RELATIVE**: PC-relative branch
   - 2 bytes: opcode + signed offset
   - Range: -128 to +127 from the instruction following the branch
   - Example: BEQ label -> $F0 $offset

Reference
---------
- MOS MCS6500 Microcomputer Family Programming Manual
- http://www.6502.org/tutorials/6502opcodes.html
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional, Union


# =============================================================================
# Addressing Mode Enumeration
# =============================================================================

class AddressingMode(Enum):
    """
    6502 addressing modes used by the generator.

    Each addressing mode determines how the operand is interpreted
    and affects the instruction encoding and size.
    """
    IMPLIED = auto()     # No operand (INX, RTS)
    IMMEDIATE = auto()   # #value (literal byte)
    ABSOLUTE = auto()    # Full 16-bit address
    ABSOLUTE_X = auto()  # address,X
    RELATIVE = auto()    # Branch displacement (signed 8-bit)

    def __str__(self) -> str:
        """Return human-readable name for error messages."""
        return {
            AddressingMode.IMPLIED: "implied",
            AddressingMode.IMMEDIATE: "immediate",
            AddressingMode.ABSOLUTE: "absolute",
            AddressingMode.ABSOLUTE_X: "absolute,X",
            AddressingMode.RELATIVE: "relative",
        }[self]


# =============================================================================
# Instruction Information
# =============================================================================

@dataclass(frozen=True)
class InstructionInfo:
    """
    Information about a specific instruction encoding.

    Attributes:
        opcode: The opcode byte
        size: Total instruction size in bytes (including operand)
        cycles: Base number of CPU cycles
        operand_size: Size of operand in bytes (0, 1, or 2)
    """
    opcode: int
    size: int
    cycles: int
    operand_size: int

    def __repr__(self) -> str:
        return f"InstructionInfo(opcode=${self.opcode:02X}, size={self.size}, cycles={self.cycles})"


# =============================================================================
# Opcode Table
# =============================================================================
# Key: (mnemonic, addressing_mode)
# Value: InstructionInfo(opcode, total_size, cycles, operand_size)
# =============================================================================

OPCODE_TABLE: dict[tuple[str, AddressingMode], InstructionInfo] = {
    # Implied
    ("INX", AddressingMode.IMPLIED): InstructionInfo(0xE8, 1, 2, 0),
    ("INY", AddressingMode.IMPLIED): InstructionInfo(0xC8, 1, 2, 0),
    ("DEX", AddressingMode.IMPLIED): InstructionInfo(0xCA, 1, 2, 0),
    ("DEY", AddressingMode.IMPLIED): InstructionInfo(0x88, 1, 2, 0),
    ("NOP", AddressingMode.IMPLIED): InstructionInfo(0xEA, 1, 2, 0),
    ("RTS", AddressingMode.IMPLIED): InstructionInfo(0x60, 1, 6, 0),

    # Immediate
    ("LDA", AddressingMode.IMMEDIATE): InstructionInfo(0xA9, 2, 2, 1),
    ("LDX", AddressingMode.IMMEDIATE): InstructionInfo(0xA2, 2, 2, 1),
    ("LDY", AddressingMode.IMMEDIATE): InstructionInfo(0xA0, 2, 2, 1),
    ("CMP", AddressingMode.IMMEDIATE): InstructionInfo(0xC9, 2, 2, 1),

    # Absolute
    ("LDA", AddressingMode.ABSOLUTE): InstructionInfo(0xAD, 3, 4, 2),
    ("STA", AddressingMode.ABSOLUTE): InstructionInfo(0x8D, 3, 4, 2),
    ("JMP", AddressingMode.ABSOLUTE): InstructionInfo(0x4C, 3, 3, 2),
    ("JSR", AddressingMode.ABSOLUTE): InstructionInfo(0x20, 3, 6, 2),

    # Absolute,X
    ("LDA", AddressingMode.ABSOLUTE_X): InstructionInfo(0xBD, 3, 4, 2),
    ("STA", AddressingMode.ABSOLUTE_X): InstructionInfo(0x9D, 3, 5, 2),

    # Relative (branches)
    ("BEQ", AddressingMode.RELATIVE): InstructionInfo(0xF0, 2, 2, 1),
    ("BNE", AddressingMode.RELATIVE): InstructionInfo(0xD0, 2, 2, 1),
    ("BCC", AddressingMode.RELATIVE): InstructionInfo(0x90, 2, 2, 1),
    ("BCS", AddressingMode.RELATIVE): InstructionInfo(0xB0, 2, 2, 1),
    ("BPL", AddressingMode.RELATIVE): InstructionInfo(0x10, 2, 2, 1),
    ("BMI", AddressingMode.RELATIVE): InstructionInfo(0x30, 2, 2, 1),
}

# All mnemonics present in the table
MNEMONICS: frozenset[str] = frozenset(m for (m, _) in OPCODE_TABLE)

# Instructions that take a signed 8-bit displacement
BRANCH_INSTRUCTIONS: frozenset[str] = frozenset(
    m for (m, mode) in OPCODE_TABLE if mode is AddressingMode.RELATIVE
)

# Signed displacement limits for relative branches
BRANCH_MIN = -128
BRANCH_MAX = 127


# =============================================================================
# Lookup Functions
# =============================================================================

def get_instruction_info(
    mnemonic: str,
    mode: AddressingMode
) -> Optional[InstructionInfo]:
    """
    Look up instruction information by mnemonic and addressing mode.

    Args:
        mnemonic: The instruction mnemonic (e.g., "LDA")
        mode: The addressing mode

    Returns:
        InstructionInfo if found, None if the combination is invalid
    """
    return OPCODE_TABLE.get((mnemonic.upper(), mode))


def get_valid_modes(mnemonic: str) -> list[AddressingMode]:
    """Get all addressing modes the table lists for an instruction."""
    mnemonic = mnemonic.upper()
    return [mode for (m, mode) in OPCODE_TABLE if m == mnemonic]


def is_branch_instruction(mnemonic: str) -> bool:
    """Check if an instruction is a branch (uses relative addressing)."""
    return mnemonic.upper() in BRANCH_INSTRUCTIONS


# =============================================================================
# Operand Encoding Helpers
# =============================================================================

def encode_word(value: int) -> bytes:
    """
    Encode a 16-bit value little-endian.

    Raises:
        ValueError: If the value does not fit in 16 bits
    """
    if not 0 <= value <= 0xFFFF:
        raise ValueError(f"value ${value:X} does not fit in 16 bits")
    return bytes([value & 0xFF, (value >> 8) & 0xFF])


def branch_displacement(branch_address: int, target_address: int) -> int:
    """
    Compute the displacement of a relative branch.

    The 6502 adds the displacement to the address of the instruction
    following the branch, i.e. the branch opcode address plus two.

    Args:
        branch_address: Address of the branch opcode byte
        target_address: Address the branch should reach

    Returns:
        The signed displacement (not range-checked)
    """
    return target_address - (branch_address + 2)


def in_branch_range(displacement: int) -> bool:
    """Return True if a displacement fits in a signed byte."""
    return BRANCH_MIN <= displacement <= BRANCH_MAX


def format_operand(mode: AddressingMode, operand: Union[int, str, None]) -> str:
    """
    Format an operand the way a listing shows it.

    Integers are shown as hex ($xx or $xxxx); strings are label names.
    """
    if mode is AddressingMode.IMPLIED or operand is None:
        return ""
    if isinstance(operand, str):
        text = operand
    elif mode is AddressingMode.IMMEDIATE:
        text = f"${operand:02X}"
    else:
        text = f"${operand:04X}"

    if mode is AddressingMode.IMMEDIATE:
        return f"#{text}"
    if mode is AddressingMode.ABSOLUTE_X:
        return f"{text},X"
    return text
