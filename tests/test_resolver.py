"""
Resolver and Listing Tests
==========================

Tests for the second pass of the layout engine: patching fixup sites
once the base address is known, and rendering the resolved listing.
"""

import pytest

from c64prg.assembler import ADDRESS_LIMIT, CodeEmitter, Resolver, format_listing
from c64prg.cpu import AddressingMode
from c64prg.errors import (
    BranchRangeExceededError,
    EmitterNotFinishedError,
    LayoutOverflowError,
    UnresolvedLabelError,
)


# =============================================================================
# Test Fixtures
# =============================================================================

@pytest.fixture
def loop_emitter() -> CodeEmitter:
    """
    A small finished program with forward and backward references.

            LDX #$00
    loop:   INX
            BEQ done        ; forward relative
            JMP loop        ; backward absolute
    done:   RTS
    """
    emitter = CodeEmitter()
    emitter.emit_instruction("LDX", AddressingMode.IMMEDIATE, 0x00)
    emitter.mark_label("loop")
    emitter.emit_instruction("INX")
    emitter.emit_instruction("BEQ", AddressingMode.RELATIVE, "done")
    emitter.emit_instruction("JMP", AddressingMode.ABSOLUTE, "loop")
    emitter.mark_label("done")
    emitter.emit_instruction("RTS")
    emitter.finish()
    return emitter


# =============================================================================
# Resolution Tests
# =============================================================================

class TestResolver:
    """Tests for Resolver.resolve()."""

    def test_base_address(self, loop_emitter):
        """The base address is the load address plus the bootstrap length."""
        resolver = Resolver(loop_emitter, load_address=0x0801)
        assert resolver.base_address(13) == 0x080E

    def test_patches_all_sites(self, loop_emitter):
        """Absolute and relative sites receive their final values."""
        resolved = Resolver(loop_emitter, load_address=0x0801).resolve(13)
        # loop = $080E + 2 = $0810; done = $080E + 8 = $0816
        assert resolved.code == bytes([
            0xA2, 0x00,
            0xE8,
            0xF0, 0x03,
            0x4C, 0x10, 0x08,
            0x60,
        ])
        assert resolved.base_address == 0x080E
        assert resolved.end_address == 0x080E + 9

    def test_symbols(self, loop_emitter):
        """Symbols map every label to its absolute address."""
        resolved = Resolver(loop_emitter, load_address=0x1001).resolve(13)
        assert resolved.symbols == {"loop": 0x1010, "done": 0x1016}

    def test_emitter_buffer_untouched(self, loop_emitter):
        """Resolution works on a copy of the emitted bytes."""
        before = loop_emitter.buffer
        Resolver(loop_emitter, load_address=0x0801).resolve(13)
        assert loop_emitter.buffer == before

    def test_branch_displacement_independent_of_base(self, loop_emitter):
        """Relative bytes are the same for any base address."""
        low = Resolver(loop_emitter, load_address=0x0801).resolve(13).code
        high = Resolver(loop_emitter, load_address=0xC000).resolve(13).code
        assert low[4] == high[4] == 0x03
        assert low[6:8] != high[6:8]

    def test_forward_branch_out_of_range(self):
        """A forward branch past +127 raises instead of truncating."""
        emitter = CodeEmitter()
        emitter.emit_instruction("BEQ", AddressingMode.RELATIVE, "far")
        emitter.emit(bytes(200))
        emitter.mark_label("far")
        emitter.finish()

        with pytest.raises(BranchRangeExceededError) as exc_info:
            Resolver(emitter, load_address=0x0801).resolve(13)
        assert exc_info.value.offset == 200
        assert exc_info.value.site == 1
        assert "use JMP" in str(exc_info.value)

    def test_forward_branch_at_range_limit(self):
        """A forward displacement of exactly +127 is allowed."""
        emitter = CodeEmitter()
        emitter.emit_instruction("BNE", AddressingMode.RELATIVE, "far")
        emitter.emit(bytes(127))
        emitter.mark_label("far")
        emitter.finish()

        resolved = Resolver(emitter, load_address=0x0801).resolve(13)
        assert resolved.code[1] == 0x7F

    def test_unresolved_label(self):
        """A fixup to a label that was never marked raises."""
        emitter = CodeEmitter()
        emitter.emit_instruction("JMP", AddressingMode.ABSOLUTE, "missing")
        emitter.finish()

        with pytest.raises(UnresolvedLabelError) as exc_info:
            Resolver(emitter, load_address=0x0801).resolve(13)
        assert exc_info.value.label == "missing"
        assert exc_info.value.site == 1

    def test_code_past_address_space(self):
        """Code that would run past $FFFF raises LayoutOverflowError."""
        emitter = CodeEmitter()
        emitter.emit(bytes(20))
        emitter.finish()

        with pytest.raises(LayoutOverflowError):
            Resolver(emitter, load_address=0xFFF0).resolve(0)

    def test_label_past_address_space(self):
        """A label just past the last code byte cannot be addressed at $10000."""
        emitter = CodeEmitter()
        emitter.emit_instruction("JMP", AddressingMode.ABSOLUTE, "end")
        emitter.mark_label("end")
        emitter.finish()

        with pytest.raises(LayoutOverflowError) as exc_info:
            Resolver(emitter, load_address=0xFFFD).resolve(0)
        assert "'end'" in str(exc_info.value)
        assert "$10000" in str(exc_info.value)

    def test_label_at_last_address(self):
        """The same layout one byte lower resolves normally."""
        emitter = CodeEmitter()
        emitter.emit_instruction("JMP", AddressingMode.ABSOLUTE, "end")
        emitter.mark_label("end")
        emitter.finish()

        resolved = Resolver(emitter, load_address=0xFFFC).resolve(0)
        assert resolved.code == b"\x4C\xFF\xFF"

    def test_unfinished_emitter(self):
        """Fixups are only resolved once emission has finished."""
        emitter = CodeEmitter()
        emitter.emit_instruction("RTS")

        with pytest.raises(EmitterNotFinishedError):
            Resolver(emitter, load_address=0x0801).resolve(13)

    def test_code_ending_at_last_address(self):
        """Code whose last byte is $FFFF still fits."""
        emitter = CodeEmitter()
        emitter.emit(bytes(16))
        emitter.finish()

        resolved = Resolver(emitter, load_address=0xFFF0).resolve(0)
        assert resolved.end_address - 1 == ADDRESS_LIMIT


# =============================================================================
# Listing Tests
# =============================================================================

class TestListing:
    """Tests for format_listing()."""

    def test_listing_contents(self, loop_emitter):
        """The listing shows addresses, bytes, labels and symbols."""
        resolved = Resolver(loop_emitter, load_address=0x0801).resolve(13)
        text = format_listing(
            resolved.code, resolved.base_address, loop_emitter.listing, resolved.symbols
        )
        lines = text.splitlines()
        assert "$080E  A2 00        LDX #$00" in lines
        assert "$0813  4C 10 08     JMP loop" in lines
        assert any(line.strip() == "loop:" for line in lines)
        assert "Symbol Table" in lines
        assert any(line.startswith("done") and line.endswith("$0816") for line in lines)

    def test_data_rows(self):
        """Data blocks are split into rows of eight bytes."""
        emitter = CodeEmitter()
        emitter.emit(bytes(range(1, 11)), text=".BYTE ...")
        emitter.finish()
        resolved = Resolver(emitter, load_address=0x0801).resolve(0)

        text = format_listing(resolved.code, resolved.base_address, emitter.listing, {})
        assert "$0801  01 02 03 04 05 06 07 08 .BYTE ..." in text
        assert "$0809  09 0A" in text
