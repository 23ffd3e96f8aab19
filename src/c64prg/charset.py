"""
Character Encoding
==================

Two encodings are needed when building a PRG:

- **Screen codes** are what the video chip reads from screen memory.
  The print loop stores message bytes straight into screen memory, so
  the message is converted to screen codes. In the default upper-case
  character set 'A'..'Z' are 1..26; digits, space and most punctuation
  have the same value as in ASCII.

- **PETSCII** is what BASIC stores inside a string literal. For the
  static PRINT program the text goes into a quoted string; the machine
  starts in upper-case/graphics mode, where PETSCII $41-$5A show as
  upper-case letters, so ASCII letters are folded to upper case.
"""

from c64prg.errors import CharacterEncodingError


def to_screen_codes(text: str) -> bytes:
    """
    Convert text to screen codes for the default character set.

    'A'..'Z' map to 1..26. Every other character with a code point up
    to 255 is passed through unchanged.

    Raises:
        CharacterEncodingError: For a character above code point 255
    """
    output = bytearray()
    for position, char in enumerate(text):
        if "A" <= char <= "Z":
            output.append(ord(char) - ord("A") + 1)
        elif ord(char) <= 0xFF:
            output.append(ord(char))
        else:
            raise CharacterEncodingError(char, position, "screen code")
    return bytes(output)


def to_petscii(text: str) -> bytes:
    """
    Convert text to PETSCII for a BASIC string literal.

    Lower-case ASCII letters are folded to upper case.

    Raises:
        CharacterEncodingError: For non-ASCII or control characters,
                                and for the double quote (it would end
                                the string literal)
    """
    output = bytearray()
    for position, char in enumerate(text):
        code = ord(char)
        if char == '"' or code < 0x20 or code > 0x7E:
            raise CharacterEncodingError(char, position, "PETSCII string literal")
        output.append(ord(char.upper()))
    return bytes(output)
