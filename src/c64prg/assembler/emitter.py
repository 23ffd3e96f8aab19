"""
Code Emitter and Label Table
============================

This module implements the first pass of the two-pass layout engine.

The machine-code section of a PRG file starts right after the BASIC
bootstrap line, whose length is not known until the SYS address digits
have been fixed. The emitter therefore works with buffer-relative
offsets only:

- Every byte is appended to a single buffer that never shrinks or
  reorders, so any offset handed out stays valid for the whole run.
- Every named program point is recorded in a LabelTable the moment it
  is emitted.
- Every operand that depends on an address is reserved as a placeholder
  and recorded as a FixupSite, to be patched by the Resolver once the
  base address is known.

Backward relative branches are the one exception: their displacement
does not depend on the base address, so they are encoded immediately
and leave no fixup behind. Absolute operands always go through the
fixup table, forward or backward, because the base is unknown here.

Usage
-----
    >>> emitter = CodeEmitter()
    >>> emitter.mark_label("loop")
    >>> emitter.emit_instruction("INX")
    >>> emitter.emit_instruction("BNE", AddressingMode.RELATIVE, "loop")
    >>> emitter.emit_instruction("JMP", AddressingMode.ABSOLUTE, "loop")
    >>> emitter.finish()
    >>> [site.kind for site in emitter.fixups]
    [<FixupKind.ABSOLUTE_LOW: 'absolute_low'>, <FixupKind.ABSOLUTE_HIGH: 'absolute_high'>]
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, Optional, Union
import logging

from c64prg.cpu import (
    AddressingMode,
    branch_displacement,
    encode_word,
    format_operand,
    get_instruction_info,
    get_valid_modes,
    in_branch_range,
)
from c64prg.errors import (
    BranchRangeExceededError,
    DuplicateLabelError,
    EmitterFrozenError,
    UnresolvedLabelError,
)

# Logger for this module
logger = logging.getLogger(__name__)


# =============================================================================
# Fixup Records
# =============================================================================

class FixupKind(Enum):
    """
    What a fixup site needs written into it.

    ABSOLUTE_LOW and ABSOLUTE_HIGH always come as a pair on consecutive
    bytes (little-endian address). RELATIVE_BRANCH is a single signed
    displacement byte directly after a branch opcode.
    """
    ABSOLUTE_LOW = "absolute_low"
    ABSOLUTE_HIGH = "absolute_high"
    RELATIVE_BRANCH = "relative_branch"


@dataclass(frozen=True)
class FixupSite:
    """
    A buffer position whose final value depends on a label address.

    Attributes:
        offset: Buffer offset of the byte to patch
        kind: What value the byte receives
        target: Name of the label the value is computed from
    """
    offset: int
    kind: FixupKind
    target: str


@dataclass(frozen=True)
class Label:
    """
    A named, buffer-relative program point.

    Attributes:
        name: Label name
        offset: Buffer offset at which the label was defined
    """
    name: str
    offset: int


@dataclass(frozen=True)
class ListingEntry:
    """
    One emitted item for the listing.

    Attributes:
        offset: Buffer offset of the first byte
        size: Number of bytes the item occupies
        text: Instruction or data description (e.g. "LDA message,X")
    """
    offset: int
    size: int
    text: str


# =============================================================================
# Label Table
# =============================================================================

class LabelTable:
    """
    Records where each named program point was emitted.

    Each label is defined exactly once. After freeze() the table is
    read-only.
    """

    def __init__(self) -> None:
        self._labels: dict[str, Label] = {}
        self._frozen = False

    def define(self, name: str, offset: int) -> Label:
        """
        Define a label at a buffer offset.

        Raises:
            DuplicateLabelError: If the label is already defined
            EmitterFrozenError: If the table has been frozen
        """
        if self._frozen:
            raise EmitterFrozenError(f"cannot define label '{name}' after emission finished")
        existing = self._labels.get(name)
        if existing is not None:
            raise DuplicateLabelError(name, existing.offset, offset)

        label = Label(name=name, offset=offset)
        self._labels[name] = label
        logger.debug(f"Label '{name}' at offset ${offset:04X}")
        return label

    def lookup(self, name: str) -> Optional[Label]:
        """Return the label with this name, or None if not (yet) defined."""
        return self._labels.get(name)

    def offset_of(self, name: str) -> int:
        """
        Return the buffer offset of a label.

        Raises:
            UnresolvedLabelError: If the label is not defined
        """
        label = self._labels.get(name)
        if label is None:
            raise UnresolvedLabelError(name)
        return label.offset

    def freeze(self) -> None:
        """Make the table read-only."""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def __contains__(self, name: object) -> bool:
        return name in self._labels

    def __len__(self) -> int:
        return len(self._labels)

    def __iter__(self) -> Iterator[Label]:
        return iter(self._labels.values())


# =============================================================================
# Code Emitter
# =============================================================================

class CodeEmitter:
    """
    Append-only machine-code buffer with deferred address fixups.

    The emitter maintains:
    - The code buffer (machine code plus inline data)
    - The label table
    - The fixup table for operands that need the base address
    - Listing entries for every instruction and data block

    Usage:
        emitter = CodeEmitter()
        emitter.emit_instruction("JSR", AddressingMode.ABSOLUTE, 0xE544)
        emitter.mark_label("loop")
        ...
        emitter.finish()
        resolver = Resolver(emitter, load_address=0x0801)
    """

    def __init__(self) -> None:
        self._buffer = bytearray()
        self._fixups: list[FixupSite] = []
        self._listing: list[ListingEntry] = []
        self._frozen = False
        self.labels = LabelTable()

    # =========================================================================
    # Raw Emission
    # =========================================================================

    @property
    def offset(self) -> int:
        """Current buffer length, i.e. the offset of the next emitted byte."""
        return len(self._buffer)

    def emit(self, data: Union[bytes, bytearray, Iterable[int]], text: str = "") -> int:
        """
        Append bytes to the buffer.

        Args:
            data: Bytes (or byte values) to append
            text: Optional listing text describing the bytes

        Returns:
            The buffer offset at which the bytes were written

        Raises:
            EmitterFrozenError: If emission has finished
        """
        self._check_open()
        data = bytes(data)
        offset = len(self._buffer)
        self._buffer.extend(data)
        if text:
            self._listing.append(ListingEntry(offset, len(data), text))
        return offset

    def mark_label(self, name: str) -> Label:
        """
        Define a label at the current buffer position.

        Raises:
            DuplicateLabelError: If the label is already defined
        """
        self._check_open()
        return self.labels.define(name, len(self._buffer))

    def reserve_fixup(self, kind: FixupKind, target: str) -> int:
        """
        Append placeholder byte(s) for an address-dependent operand.

        An absolute reference is requested as ABSOLUTE_LOW and reserves
        two bytes, recording the LOW/HIGH pair. A relative reference
        reserves one byte; if the target is already defined (a backward
        branch) the displacement is written immediately and no fixup is
        recorded.

        Args:
            kind: ABSOLUTE_LOW for a 16-bit address, RELATIVE_BRANCH for
                  a branch displacement
            target: Label name the operand refers to

        Returns:
            Buffer offset of the first reserved byte

        Raises:
            ValueError: If ABSOLUTE_HIGH is requested on its own
            BranchRangeExceededError: If a backward branch is too far
        """
        self._check_open()
        site = len(self._buffer)

        if kind is FixupKind.ABSOLUTE_HIGH:
            raise ValueError(
                "absolute fixups are reserved as a low/high pair; request ABSOLUTE_LOW"
            )

        if kind is FixupKind.ABSOLUTE_LOW:
            self._buffer.extend(b"\x00\x00")
            self._fixups.append(FixupSite(site, FixupKind.ABSOLUTE_LOW, target))
            self._fixups.append(FixupSite(site + 1, FixupKind.ABSOLUTE_HIGH, target))
            logger.debug(f"Absolute fixup at ${site:04X} -> '{target}'")
            return site

        label = self.labels.lookup(target)
        if label is not None:
            # Backward branch: base address cancels out, encode now.
            displacement = branch_displacement(site - 1, label.offset)
            if not in_branch_range(displacement):
                raise BranchRangeExceededError(target, displacement, site)
            self._buffer.append(displacement & 0xFF)
            logger.debug(f"Backward branch at ${site:04X} -> '{target}' ({displacement})")
        else:
            self._buffer.append(0x00)
            self._fixups.append(FixupSite(site, FixupKind.RELATIVE_BRANCH, target))
            logger.debug(f"Relative fixup at ${site:04X} -> '{target}'")
        return site

    # =========================================================================
    # Instruction Emission
    # =========================================================================

    def emit_instruction(
        self,
        mnemonic: str,
        mode: AddressingMode = AddressingMode.IMPLIED,
        operand: Union[int, str, None] = None,
    ) -> int:
        """
        Encode one instruction from the instruction table.

        An integer operand is encoded directly. A string operand is a
        label reference and is reserved through reserve_fixup().

        Args:
            mnemonic: Instruction mnemonic (e.g. "LDA")
            mode: Addressing mode
            operand: Byte/address value, label name, or None for IMPLIED

        Returns:
            Buffer offset of the opcode byte

        Raises:
            ValueError: For an unknown mnemonic/mode pair or a bad operand
        """
        info = get_instruction_info(mnemonic, mode)
        if info is None:
            valid = ", ".join(str(m) for m in get_valid_modes(mnemonic)) or "none"
            raise ValueError(
                f"'{mnemonic}' does not support {mode} addressing (valid: {valid})"
            )
        if info.operand_size == 0 and operand is not None:
            raise ValueError(f"'{mnemonic}' takes no operand")
        if info.operand_size > 0 and operand is None:
            raise ValueError(f"'{mnemonic}' requires an operand")

        self._check_open()
        start = len(self._buffer)

        # Operands are checked before the opcode is appended, so a
        # rejected instruction leaves the buffer unchanged.
        operand_bytes = b""
        fixup_kind = None
        if isinstance(operand, str):
            if mode is AddressingMode.RELATIVE:
                fixup_kind = FixupKind.RELATIVE_BRANCH
                label = self.labels.lookup(operand)
                if label is not None:
                    displacement = branch_displacement(start, label.offset)
                    if not in_branch_range(displacement):
                        raise BranchRangeExceededError(operand, displacement, start + 1)
            elif info.operand_size == 2:
                fixup_kind = FixupKind.ABSOLUTE_LOW
            else:
                raise ValueError(f"'{mnemonic}' in {mode} mode cannot take a label")
        elif operand is not None:
            if mode is AddressingMode.RELATIVE:
                raise ValueError("branch targets must be labels")
            if info.operand_size == 2:
                operand_bytes = encode_word(operand)
            else:
                if not 0 <= operand <= 0xFF:
                    raise ValueError(f"operand ${operand:X} does not fit in a byte")
                operand_bytes = bytes([operand])

        self._buffer.append(info.opcode)
        if fixup_kind is not None:
            self.reserve_fixup(fixup_kind, operand)
        else:
            self._buffer.extend(operand_bytes)

        text = f"{mnemonic.upper()} {format_operand(mode, operand)}".rstrip()
        self._listing.append(ListingEntry(start, info.size, text))
        return start

    # =========================================================================
    # Completion
    # =========================================================================

    def finish(self) -> None:
        """
        Freeze the buffer and label table.

        After this call offsets are read-only; further emission raises
        EmitterFrozenError.
        """
        self._frozen = True
        self.labels.freeze()
        logger.debug(
            f"Emission finished: {len(self._buffer)} bytes, "
            f"{len(self.labels)} labels, {len(self._fixups)} fixups"
        )

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def buffer(self) -> bytes:
        """A copy of the current buffer contents."""
        return bytes(self._buffer)

    @property
    def fixups(self) -> tuple[FixupSite, ...]:
        """Recorded fixup sites in emission order."""
        return tuple(self._fixups)

    @property
    def listing(self) -> tuple[ListingEntry, ...]:
        """Listing entries in emission order."""
        return tuple(self._listing)

    def __len__(self) -> int:
        return len(self._buffer)

    def _check_open(self) -> None:
        if self._frozen:
            raise EmitterFrozenError("cannot emit after emission finished")
