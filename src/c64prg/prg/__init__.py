"""
PRG File Handling
=================

- **packager**: assembles load address, BASIC and machine code into a
  PRG image and writes it to disk
- **parser**: reads BASIC-headed PRG files back for inspection
"""

from c64prg.prg.packager import LOAD_ADDRESS_SIZE, package, write_prg
from c64prg.prg.parser import ParsedLine, PrgFile

__all__ = [
    "LOAD_ADDRESS_SIZE",
    "package",
    "write_prg",
    "ParsedLine",
    "PrgFile",
]
