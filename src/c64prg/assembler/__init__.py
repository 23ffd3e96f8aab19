"""
Two-Pass Layout Engine
======================

Pass 1 (Emission)
-----------------
- CodeEmitter appends instructions and inline data to an append-only buffer
- LabelTable records the buffer offset of every named program point
- Operands that depend on an absolute address are reserved as FixupSites

Pass 2 (Resolution)
-------------------
- Resolver computes the base address from the bootstrap length
- Every FixupSite is patched with an absolute address or branch displacement

Usage:
    >>> from c64prg.assembler import CodeEmitter, Resolver
    >>> emitter = CodeEmitter()
    >>> # ... emit ...
    >>> emitter.finish()
    >>> resolved = Resolver(emitter, load_address=0x0801).resolve(13)
"""

from c64prg.assembler.emitter import (
    CodeEmitter,
    FixupKind,
    FixupSite,
    Label,
    LabelTable,
    ListingEntry,
)
from c64prg.assembler.resolver import Resolver, ResolvedCode, ADDRESS_LIMIT
from c64prg.assembler.listing import format_listing

__all__ = [
    "CodeEmitter",
    "FixupKind",
    "FixupSite",
    "Label",
    "LabelTable",
    "ListingEntry",
    "Resolver",
    "ResolvedCode",
    "ADDRESS_LIMIT",
    "format_listing",
]
