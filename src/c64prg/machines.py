"""
Commodore Machine Profiles
==========================

The generated routine depends on a few fixed addresses of the target
machine: where BASIC programs load, where screen memory starts, and
which ROM routines clear the screen and read the keyboard. This module
collects them per machine so the same engine can target different
machines without code changes.

Profiles
--------
- c64: Commodore 64, BASIC at $0801, screen at $0400
- vic20: unexpanded VIC-20, BASIC at $1001, screen at $1E00
- vic20-8k: VIC-20 with 8K or more expansion, BASIC at $1201, screen at $1000

GETIN ($FFE4) sits in the KERNAL jump table and is the same on every
machine; the screen-clear routine is an internal ROM entry point and is
not.

Reference
---------
- C64 memory map: https://sta.c64.org/cbm64mem.html
- VIC-20 memory map: http://www.zimmers.net/anonftp/pub/cbm/maps/Vic20.MemoryMap.txt
"""

from dataclasses import dataclass

from c64prg.basic.tokens import TOKEN_PRINT, TOKEN_SYS
from c64prg.errors import ConfigurationError


# =============================================================================
# ROM Constants
# =============================================================================

# KERNAL GETIN: read a character from the keyboard buffer (0 if empty)
KERNAL_GETIN = 0xFFE4

# Screen-clear entry points in the screen editor ROM
C64_CLEAR_SCREEN = 0xE544
VIC20_CLEAR_SCREEN = 0xE55F


# =============================================================================
# Machine Profile
# =============================================================================

@dataclass(frozen=True)
class MachineProfile:
    """
    Architecture constants for one target machine.

    Attributes:
        name: Short profile name used on the command line
        description: Human-readable machine name
        load_address: Start of BASIC program memory
        screen_address: Start of screen memory
        clear_screen_routine: ROM routine that clears the screen
        getin_routine: ROM routine that reads a key (A=0 if none)
        sys_token: BASIC token byte for SYS
        print_token: BASIC token byte for PRINT
    """
    name: str
    description: str
    load_address: int
    screen_address: int
    clear_screen_routine: int
    getin_routine: int = KERNAL_GETIN
    sys_token: int = TOKEN_SYS
    print_token: int = TOKEN_PRINT


C64 = MachineProfile(
    name="c64",
    description="Commodore 64",
    load_address=0x0801,
    screen_address=0x0400,
    clear_screen_routine=C64_CLEAR_SCREEN,
)

VIC20 = MachineProfile(
    name="vic20",
    description="Commodore VIC-20 (unexpanded)",
    load_address=0x1001,
    screen_address=0x1E00,
    clear_screen_routine=VIC20_CLEAR_SCREEN,
)

VIC20_8K = MachineProfile(
    name="vic20-8k",
    description="Commodore VIC-20 (+8K or more)",
    load_address=0x1201,
    screen_address=0x1000,
    clear_screen_routine=VIC20_CLEAR_SCREEN,
)

MACHINES: dict[str, MachineProfile] = {
    profile.name: profile for profile in (C64, VIC20, VIC20_8K)
}

DEFAULT_MACHINE = C64.name


def get_machine(name: str) -> MachineProfile:
    """
    Look up a machine profile by name (case-insensitive).

    Raises:
        ConfigurationError: If no profile has this name
    """
    profile = MACHINES.get(name.strip().lower())
    if profile is None:
        known = ", ".join(sorted(MACHINES))
        raise ConfigurationError(f"unknown machine '{name}' (known: {known})")
    return profile
