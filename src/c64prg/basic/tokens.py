"""
Commodore BASIC V2 Tokens
=========================

BASIC keywords are stored in program memory as single token bytes in the
range $80-$CB. Only the tokens the generator writes, plus a handful that
commonly appear in autorun headers, are listed here; the PRG reader uses
the same table to show lines in readable form.

Line layout in memory:
    link (2, LE)  line number (2, LE)  tokenized text  $00

The program ends with a link pointer of $0000.
"""

# Tokens the generator emits
TOKEN_SYS = 0x9E
TOKEN_PRINT = 0x99
TOKEN_REM = 0x8F

# Token byte -> keyword, for detokenizing
TOKEN_NAMES: dict[int, str] = {
    0x80: "END",
    0x81: "FOR",
    0x82: "NEXT",
    0x89: "GOTO",
    0x8D: "GOSUB",
    0x8E: "RETURN",
    TOKEN_REM: "REM",
    0x97: "POKE",
    TOKEN_PRINT: "PRINT",
    TOKEN_SYS: "SYS",
    0xA2: "NEW",
    0xC2: "PEEK",
}

# Largest line number Commodore BASIC accepts
MAX_LINE_NUMBER = 63999


def detokenize(body: bytes) -> str:
    """
    Render a tokenized line body as text.

    Token bytes outside quoted strings are replaced by their keyword;
    unknown tokens are shown as {$xx}. Bytes inside quotes and printable
    ASCII are shown as characters.
    """
    parts = []
    in_quotes = False
    for value in body:
        if value == 0x22:
            in_quotes = not in_quotes
            parts.append('"')
        elif value >= 0x80 and not in_quotes:
            parts.append(TOKEN_NAMES.get(value, f"{{${value:02X}}}"))
        elif 0x20 <= value < 0x7F:
            parts.append(chr(value))
        else:
            parts.append(f"{{${value:02X}}}")
    return "".join(parts)
