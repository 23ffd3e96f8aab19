"""
PRG Packager
============

A Commodore PRG file is the memory image of a program prefixed by the
address it loads at:

```
Offset  Size  Description
------  ----  -----------
0       2     Load address (little-endian)
2       n     BASIC program (bootstrap line + $00 $00)
2+n     m     Machine code (may be empty)
```

The whole file is assembled in memory first and written with a single
scoped write, so a failure earlier in generation never leaves a partial
file behind.
"""

from pathlib import Path
from typing import Union
import logging
import struct

from c64prg.errors import OutputWriteError

# Logger for this module
logger = logging.getLogger(__name__)

# Size of the load-address header
LOAD_ADDRESS_SIZE = 2


def package(load_address: int, bootstrap: bytes, code: bytes = b"") -> bytes:
    """
    Concatenate load address, bootstrap and machine code.

    Args:
        load_address: Address the image loads at
        bootstrap: Encoded BASIC program
        code: Resolved machine code

    Returns:
        The complete PRG file contents
    """
    return struct.pack("<H", load_address) + bytes(bootstrap) + bytes(code)


def write_prg(filepath: Union[str, Path], data: bytes) -> int:
    """
    Write a PRG image to disk.

    Args:
        filepath: Destination path
        data: Complete PRG file contents

    Returns:
        Number of bytes written

    Raises:
        OutputWriteError: If the file cannot be created or written
    """
    filepath = Path(filepath)
    try:
        with open(filepath, "wb") as f:
            f.write(data)
    except OSError as e:
        raise OutputWriteError(str(filepath), e.strerror or str(e)) from e

    logger.info(f"Wrote {len(data)} bytes to {filepath}")
    return len(data)
