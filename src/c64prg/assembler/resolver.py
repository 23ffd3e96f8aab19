"""
Fixup Resolver
==============

Second pass of the two-pass layout engine.

Once the BASIC bootstrap has been built its length is fixed, and with it
the absolute address of the first machine-code byte:

    base = load_address + bootstrap_length

Every label offset then becomes an absolute address by simple addition,
and every fixup site recorded by the CodeEmitter is patched:

    ABSOLUTE_LOW      (base + label) & $FF
    ABSOLUTE_HIGH     ((base + label) >> 8) & $FF
    RELATIVE_BRANCH   (base + label) - (base + (site - 1) + 2)

The `site - 1` is the branch opcode byte in front of the displacement
byte; the 6502 measures displacements from the instruction that follows
the branch.

The resolver patches a copy of the emitter buffer. If any site fails,
the error propagates and no patched code is returned.
"""

from dataclasses import dataclass, field
import logging

from c64prg.assembler.emitter import CodeEmitter, FixupKind, FixupSite
from c64prg.cpu import branch_displacement, in_branch_range
from c64prg.errors import (
    BranchRangeExceededError,
    EmitterNotFinishedError,
    LayoutOverflowError,
    UnresolvedLabelError,
)

# Logger for this module
logger = logging.getLogger(__name__)

# Highest address the 6502 can reach
ADDRESS_LIMIT = 0xFFFF


@dataclass(frozen=True)
class ResolvedCode:
    """
    Machine code with every fixup patched.

    Attributes:
        code: The patched machine-code bytes
        base_address: Absolute address of the first code byte
        symbols: Label name -> absolute address
    """
    code: bytes
    base_address: int
    symbols: dict[str, int] = field(default_factory=dict)

    @property
    def end_address(self) -> int:
        """Address one past the last code byte."""
        return self.base_address + len(self.code)


class Resolver:
    """
    Resolves the fixup table of a finished CodeEmitter.

    Usage:
        resolver = Resolver(emitter, load_address=0x0801)
        resolved = resolver.resolve(bootstrap_length=13)
        resolved.code          # patched bytes
        resolved.base_address  # $080E
    """

    def __init__(self, emitter: CodeEmitter, load_address: int):
        self._emitter = emitter
        self._load_address = load_address

    def base_address(self, bootstrap_length: int) -> int:
        """Absolute address of the first machine-code byte."""
        return self._load_address + bootstrap_length

    def resolve(self, bootstrap_length: int) -> ResolvedCode:
        """
        Patch every fixup site.

        Args:
            bootstrap_length: Total byte length of the BASIC bootstrap,
                              including the program terminator

        Returns:
            ResolvedCode with patched code, base address and symbols

        Raises:
            UnresolvedLabelError: A fixup refers to an undefined label
            BranchRangeExceededError: A branch displacement is outside -128..127
            EmitterNotFinishedError: The emitter has not been finished
            LayoutOverflowError: The code or a label address runs past $FFFF
        """
        if not self._emitter.frozen:
            raise EmitterNotFinishedError(
                "cannot resolve fixups before emission finished",
                hint="call finish() on the emitter first",
            )

        base = self.base_address(bootstrap_length)
        code = bytearray(self._emitter.buffer)

        end = base + len(code)
        if end - 1 > ADDRESS_LIMIT:
            raise LayoutOverflowError(
                f"machine code at ${base:04X} with {len(code)} bytes runs past ${ADDRESS_LIMIT:04X}",
                hint="use a lower load address or a shorter message",
            )

        for site in self._emitter.fixups:
            code[site.offset] = self._resolve_site(site, base)

        symbols = {label.name: base + label.offset for label in self._emitter.labels}
        logger.debug(
            f"Resolved {len(self._emitter.fixups)} fixups against base ${base:04X}"
        )
        return ResolvedCode(code=bytes(code), base_address=base, symbols=symbols)

    def _resolve_site(self, site: FixupSite, base: int) -> int:
        """Compute the byte value for one fixup site."""
        label = self._emitter.labels.lookup(site.target)
        if label is None:
            raise UnresolvedLabelError(site.target, site.offset)

        target = base + label.offset
        if target > ADDRESS_LIMIT:
            raise LayoutOverflowError(
                f"label '{site.target}' referenced at offset ${site.offset:04X} "
                f"resolves to ${target:X}, past ${ADDRESS_LIMIT:04X}",
                hint="use a lower load address or a shorter message",
            )

        if site.kind is FixupKind.ABSOLUTE_LOW:
            return target & 0xFF
        if site.kind is FixupKind.ABSOLUTE_HIGH:
            return (target >> 8) & 0xFF

        displacement = branch_displacement(base + site.offset - 1, target)
        if not in_branch_range(displacement):
            raise BranchRangeExceededError(site.target, displacement, site.offset)
        return displacement & 0xFF
