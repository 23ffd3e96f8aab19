"""
c64prg CPU Package
==================

This package contains the 6502 definitions the layout engine encodes
instructions from.

Modules:
    mos6502: Instruction subset, addressing modes, and helper functions
             for operand encoding and branch displacement checks.

Usage:
    from c64prg.cpu import (
        AddressingMode,
        InstructionInfo,
        get_instruction_info,
    )
"""

from c64prg.cpu.mos6502 import (
    # Core types
    AddressingMode,
    InstructionInfo,
    # Instruction database
    OPCODE_TABLE,
    MNEMONICS,
    BRANCH_INSTRUCTIONS,
    BRANCH_MIN,
    BRANCH_MAX,
    # Lookup functions
    get_instruction_info,
    get_valid_modes,
    is_branch_instruction,
    # Encoding helpers
    encode_word,
    branch_displacement,
    in_branch_range,
    format_operand,
)

__all__ = [
    "AddressingMode",
    "InstructionInfo",
    "OPCODE_TABLE",
    "MNEMONICS",
    "BRANCH_INSTRUCTIONS",
    "BRANCH_MIN",
    "BRANCH_MAX",
    "get_instruction_info",
    "get_valid_modes",
    "is_branch_instruction",
    "encode_word",
    "branch_displacement",
    "in_branch_range",
    "format_operand",
]
