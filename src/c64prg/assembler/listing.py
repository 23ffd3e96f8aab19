"""
Assembly Listing
================

Renders resolved machine code as a human-readable listing: one line per
instruction with its absolute address and bytes, label lines where
labels were defined, data blocks split into rows of eight bytes, and a
symbol table at the end.

Example:
    $080E  20 44 E5     JSR $E544
    $0811  A2 00        LDX #$00
                    loop:
    $0813  BD 22 08     LDA message,X
"""

from typing import Iterable

from c64prg.assembler.emitter import ListingEntry

# Bytes shown per listing row for data blocks
DATA_BYTES_PER_ROW = 8


def _hex_bytes(data: bytes) -> str:
    return " ".join(f"{b:02X}" for b in data)


def format_listing(
    code: bytes,
    base_address: int,
    entries: Iterable[ListingEntry],
    symbols: dict[str, int],
    title: str = "c64prg listing",
) -> str:
    """
    Format a listing of resolved code.

    Args:
        code: Resolved machine code
        base_address: Absolute address of code[0]
        entries: Listing entries from the CodeEmitter
        symbols: Label name -> absolute address
        title: Heading line

    Returns:
        The listing text
    """
    labels_at: dict[int, list[str]] = {}
    for name, address in symbols.items():
        labels_at.setdefault(address - base_address, []).append(name)

    lines = [title, "=" * 60, "", "Addr   Bytes        Source", "-" * 60]

    for entry in entries:
        for name in labels_at.pop(entry.offset, []):
            lines.append(f"{'':19}{name}:")

        chunk = code[entry.offset:entry.offset + entry.size]
        if entry.size <= 3:
            address = base_address + entry.offset
            lines.append(f"${address:04X}  {_hex_bytes(chunk):<12} {entry.text}")
            continue

        # Data block: first row carries the text
        for row in range(0, len(chunk), DATA_BYTES_PER_ROW):
            address = base_address + entry.offset + row
            part = chunk[row:row + DATA_BYTES_PER_ROW]
            text = entry.text if row == 0 else ""
            lines.append(f"${address:04X}  {_hex_bytes(part):<23} {text}".rstrip())

    # Labels at the very end of the code (nothing emitted after them)
    for offset in sorted(labels_at):
        for name in labels_at[offset]:
            lines.append(f"{'':19}{name}:")

    lines.append("")
    lines.append("Symbol Table")
    lines.append("-" * 30)
    for name, address in sorted(symbols.items(), key=lambda item: item[1]):
        lines.append(f"{name:20s} = ${address:04X}")
    return "\n".join(lines)
