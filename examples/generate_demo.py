#!/usr/bin/env python3
"""
c64prg Generator Demo
=====================

This script demonstrates how to use the c64prg package to:
1. Generate the default C64 program
2. Look at the resolved layout and listing
3. Build the same program for the VIC-20
4. Build a BASIC-only PRINT program
5. Read the files back and check the SYS address

Usage:
    pip install -e .
    python examples/generate_demo.py
"""

from pathlib import Path

from c64prg import PrgFile, PrgGenerator, ProgramShape


def main():
    # Output directory for generated files
    output_dir = Path("trash")
    output_dir.mkdir(exist_ok=True)

    # ==========================================================================
    # 1. Generate the default program
    # ==========================================================================
    # Available machines: "c64", "vic20", "vic20-8k"

    print("Generating C64 program...")
    program = PrgGenerator(machine="c64").generate("HELLO, WORLD!")
    c64_path = output_dir / "hello64.prg"
    program.write(c64_path)

    print(f"  File:     {c64_path} ({len(program)} bytes)")
    print(f"  SYS:      {program.bootstrap.sys_address}")
    print(f"  Code at:  ${program.base_address:04X}")

    # ==========================================================================
    # 2. Inspect the layout
    # ==========================================================================
    # Every label is resolved to an absolute address once the bootstrap
    # length is known.

    print("\nSymbols:")
    for name, address in sorted(program.symbols.items(), key=lambda item: item[1]):
        print(f"  {name:<10} ${address:04X}")

    print()
    print(program.listing)

    # ==========================================================================
    # 3. Same program for the VIC-20
    # ==========================================================================
    print("\nGenerating VIC-20 program...")
    vic = PrgGenerator(machine="vic20").generate("HELLO, VIC!")
    vic_path = output_dir / "hello20.prg"
    vic.write(vic_path)
    print(f"  File:     {vic_path} ({len(vic)} bytes)")
    print(f"  SYS:      {vic.bootstrap.sys_address}")

    # ==========================================================================
    # 4. BASIC-only PRINT program
    # ==========================================================================
    print("\nGenerating PRINT program...")
    basic = PrgGenerator().generate("HELLO, WORLD!", ProgramShape.PRINT)
    basic_path = output_dir / "print64.prg"
    basic.write(basic_path)
    print(f"  File:     {basic_path} ({len(basic)} bytes)")
    print(f"  {basic.listing}")

    # ==========================================================================
    # 5. Read the files back
    # ==========================================================================
    print("\nVerifying...")
    for path in (c64_path, vic_path, basic_path):
        prg = PrgFile.from_file(path)
        status = "ok" if prg.sys_address is None or prg.sys_targets_machine_code() else "MISMATCH"
        print(f"  {path.name:<14} {' / '.join(prg.listing()):<24} {status}")


if __name__ == "__main__":
    main()
