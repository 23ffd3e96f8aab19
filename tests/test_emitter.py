"""
Code Emitter Unit Tests
=======================

Tests for the first pass of the layout engine.

Test Categories
---------------
1. LabelTable: definition, lookup and freezing
2. Raw emission: offsets and append-only behaviour
3. Fixups: absolute pairs, forward and backward branches
4. Instructions: encoding from the instruction table
"""

import pytest

from c64prg.assembler import CodeEmitter, FixupKind, FixupSite, Label, LabelTable
from c64prg.cpu import AddressingMode
from c64prg.errors import (
    BranchRangeExceededError,
    DuplicateLabelError,
    EmitterFrozenError,
    UnresolvedLabelError,
)


# =============================================================================
# Test Fixtures
# =============================================================================

@pytest.fixture
def emitter() -> CodeEmitter:
    """A fresh, open emitter."""
    return CodeEmitter()


# =============================================================================
# Label Table Tests
# =============================================================================

class TestLabelTable:
    """Tests for LabelTable."""

    def test_define_and_lookup(self):
        """A defined label can be looked up by name."""
        table = LabelTable()
        label = table.define("loop", 5)
        assert label == Label("loop", 5)
        assert table.lookup("loop") == label
        assert table.offset_of("loop") == 5
        assert "loop" in table
        assert len(table) == 1

    def test_lookup_missing(self):
        """Looking up an undefined label returns None."""
        assert LabelTable().lookup("nowhere") is None

    def test_offset_of_missing_raises(self):
        """offset_of() raises for an undefined label."""
        with pytest.raises(UnresolvedLabelError) as exc_info:
            LabelTable().offset_of("nowhere")
        assert exc_info.value.label == "nowhere"

    def test_duplicate_label(self):
        """Defining a label twice raises with both offsets."""
        table = LabelTable()
        table.define("loop", 2)
        with pytest.raises(DuplicateLabelError) as exc_info:
            table.define("loop", 9)
        assert exc_info.value.original_offset == 2
        assert exc_info.value.offset == 9
        assert "hint:" in str(exc_info.value)

    def test_frozen_table_rejects_definitions(self):
        """A frozen table is read-only."""
        table = LabelTable()
        table.freeze()
        assert table.frozen
        with pytest.raises(EmitterFrozenError):
            table.define("late", 0)

    def test_iteration_in_definition_order(self):
        """Iterating yields Label records in definition order."""
        table = LabelTable()
        table.define("b", 1)
        table.define("a", 4)
        assert [label.name for label in table] == ["b", "a"]


# =============================================================================
# Raw Emission Tests
# =============================================================================

class TestRawEmission:
    """Tests for emit() and mark_label()."""

    def test_emit_returns_offset(self, emitter):
        """emit() returns the offset of the first written byte."""
        assert emitter.emit(b"\x01\x02") == 0
        assert emitter.emit([3, 4, 5]) == 2
        assert emitter.offset == 5
        assert emitter.buffer == bytes([1, 2, 3, 4, 5])

    def test_label_offsets_are_buffer_positions(self, emitter):
        """Labels record the buffer length at the time they are marked."""
        emitter.mark_label("start")
        emitter.emit(b"\xEA\xEA\xEA")
        emitter.mark_label("end")
        assert emitter.labels.offset_of("start") == 0
        assert emitter.labels.offset_of("end") == 3

    def test_emit_with_text_adds_listing_entry(self, emitter):
        """Text passed to emit() appears in the listing."""
        emitter.emit(b"\x08\x09\x00", text='.TEXT "HI",0')
        assert emitter.listing[0].offset == 0
        assert emitter.listing[0].size == 3
        assert emitter.listing[0].text == '.TEXT "HI",0'

    def test_finish_freezes(self, emitter):
        """No bytes or labels can be added after finish()."""
        emitter.emit(b"\x60")
        emitter.finish()
        assert emitter.frozen
        assert emitter.labels.frozen
        with pytest.raises(EmitterFrozenError):
            emitter.emit(b"\x00")
        with pytest.raises(EmitterFrozenError):
            emitter.mark_label("late")
        with pytest.raises(EmitterFrozenError):
            emitter.emit_instruction("RTS")

    def test_buffer_is_a_copy(self, emitter):
        """The buffer property cannot be used to modify emitted code."""
        emitter.emit(b"\x60")
        data = emitter.buffer
        emitter.emit(b"\xEA")
        assert data == b"\x60"


# =============================================================================
# Fixup Tests
# =============================================================================

class TestFixups:
    """Tests for reserve_fixup()."""

    def test_absolute_reserves_low_high_pair(self, emitter):
        """An absolute reference reserves two bytes and records two sites."""
        emitter.emit(b"\x4C")
        site = emitter.reserve_fixup(FixupKind.ABSOLUTE_LOW, "target")
        assert site == 1
        assert emitter.buffer == b"\x4C\x00\x00"
        assert emitter.fixups == (
            FixupSite(1, FixupKind.ABSOLUTE_LOW, "target"),
            FixupSite(2, FixupKind.ABSOLUTE_HIGH, "target"),
        )

    def test_absolute_high_alone_is_rejected(self, emitter):
        """ABSOLUTE_HIGH cannot be reserved on its own."""
        with pytest.raises(ValueError):
            emitter.reserve_fixup(FixupKind.ABSOLUTE_HIGH, "target")

    def test_backward_absolute_is_deferred(self, emitter):
        """Absolute references to already-defined labels still need a fixup."""
        emitter.mark_label("loop")
        emitter.emit_instruction("JMP", AddressingMode.ABSOLUTE, "loop")
        kinds = [site.kind for site in emitter.fixups]
        assert kinds == [FixupKind.ABSOLUTE_LOW, FixupKind.ABSOLUTE_HIGH]

    def test_forward_branch_is_deferred(self, emitter):
        """A branch to an undefined label leaves a placeholder and a fixup."""
        emitter.emit_instruction("BEQ", AddressingMode.RELATIVE, "done")
        assert emitter.buffer == b"\xF0\x00"
        assert emitter.fixups == (FixupSite(1, FixupKind.RELATIVE_BRANCH, "done"),)

    def test_backward_branch_is_encoded_immediately(self, emitter):
        """A branch to a defined label is encoded now and leaves no fixup."""
        emitter.mark_label("wait")
        emitter.emit_instruction("CMP", AddressingMode.IMMEDIATE, 0x00)
        emitter.emit_instruction("BEQ", AddressingMode.RELATIVE, "wait")
        # Branch at offset 2; next instruction at 4; 0 - 4 = -4
        assert emitter.buffer == b"\xC9\x00\xF0\xFC"
        assert emitter.fixups == ()

    def test_branch_to_itself(self, emitter):
        """A branch to its own opcode has displacement -2."""
        emitter.mark_label("spin")
        emitter.emit_instruction("BNE", AddressingMode.RELATIVE, "spin")
        assert emitter.buffer == b"\xD0\xFE"

    def test_backward_branch_at_range_limit(self, emitter):
        """A backward displacement of exactly -128 is allowed."""
        emitter.mark_label("top")
        emitter.emit(bytes(126))
        emitter.emit_instruction("BNE", AddressingMode.RELATIVE, "top")
        assert emitter.buffer[-1] == 0x80

    def test_backward_branch_out_of_range(self, emitter):
        """A backward displacement of -129 raises instead of truncating."""
        emitter.mark_label("top")
        emitter.emit(bytes(127))
        with pytest.raises(BranchRangeExceededError) as exc_info:
            emitter.emit_instruction("BNE", AddressingMode.RELATIVE, "top")
        assert exc_info.value.offset == -129
        assert exc_info.value.target == "top"
        assert exc_info.value.site == 128
        # Nothing of the rejected branch is left in the buffer
        assert len(emitter) == 127
        assert len(emitter.listing) == 0

    def test_far_backward_branch_leaves_buffer_unchanged(self, emitter):
        emitter.mark_label("top")
        emitter.emit(bytes(200))
        with pytest.raises(BranchRangeExceededError):
            emitter.emit_instruction("BNE", AddressingMode.RELATIVE, "top")
        assert len(emitter) == 200
        emitter.emit_instruction("RTS")
        assert emitter.buffer[-1] == 0x60


# =============================================================================
# Instruction Encoding Tests
# =============================================================================

class TestInstructions:
    """Tests for emit_instruction()."""

    def test_implied(self, emitter):
        """Implied instructions are one byte."""
        emitter.emit_instruction("INX")
        emitter.emit_instruction("RTS")
        assert emitter.buffer == b"\xE8\x60"

    def test_immediate(self, emitter):
        """Immediate operands follow the opcode."""
        emitter.emit_instruction("LDX", AddressingMode.IMMEDIATE, 0x00)
        assert emitter.buffer == b"\xA2\x00"

    def test_absolute_value_is_little_endian(self, emitter):
        """Numeric absolute operands are encoded low byte first."""
        emitter.emit_instruction("JSR", AddressingMode.ABSOLUTE, 0xE544)
        emitter.emit_instruction("STA", AddressingMode.ABSOLUTE_X, 0x0400)
        assert emitter.buffer == b"\x20\x44\xE5\x9D\x00\x04"
        assert emitter.fixups == ()

    def test_listing_text(self, emitter):
        """Listing entries show the mnemonic and operand."""
        emitter.emit_instruction("LDA", AddressingMode.ABSOLUTE_X, "message")
        emitter.emit_instruction("JSR", AddressingMode.ABSOLUTE, 0xFFE4)
        texts = [entry.text for entry in emitter.listing]
        assert texts == ["LDA message,X", "JSR $FFE4"]

    def test_unsupported_mode(self, emitter):
        """An instruction/mode pair outside the table is rejected."""
        with pytest.raises(ValueError, match="does not support"):
            emitter.emit_instruction("INX", AddressingMode.IMMEDIATE, 1)

    def test_missing_operand(self, emitter):
        """Instructions with operands require one."""
        with pytest.raises(ValueError, match="requires an operand"):
            emitter.emit_instruction("LDA", AddressingMode.IMMEDIATE)

    def test_immediate_out_of_range(self, emitter):
        """Immediate values must fit in a byte."""
        emitter.emit_instruction("INX")
        with pytest.raises(ValueError):
            emitter.emit_instruction("LDA", AddressingMode.IMMEDIATE, 0x100)
        assert emitter.buffer == b"\xE8"

    def test_absolute_out_of_range(self, emitter):
        """Absolute values must fit in 16 bits; no opcode is left behind."""
        with pytest.raises(ValueError):
            emitter.emit_instruction("JMP", AddressingMode.ABSOLUTE, 0x10000)
        assert len(emitter) == 0
        assert emitter.listing == ()

    def test_label_in_one_byte_mode_rejected(self, emitter):
        with pytest.raises(ValueError, match="cannot take a label"):
            emitter.emit_instruction("LDA", AddressingMode.IMMEDIATE, "message")
        assert len(emitter) == 0

    def test_numeric_branch_target_rejected(self, emitter):
        """Branch targets are always labels."""
        with pytest.raises(ValueError, match="labels"):
            emitter.emit_instruction("BEQ", AddressingMode.RELATIVE, 4)
        assert len(emitter) == 0
