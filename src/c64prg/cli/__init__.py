"""
c64prg Command-Line Interface
=============================

This package provides the `c64prg` command, a Click-based CLI with the
subcommands:

- **create**: generate a PRG file
- **info**: inspect a PRG file
- **machines**: list machine profiles
"""

__all__ = ["c64prg"]
