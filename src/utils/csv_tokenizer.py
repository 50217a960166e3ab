"""
Quote-aware splitting of a single delimited line.
"""
from typing import List

QUOTE = '"'


def split_line(line: str, delimiter: str) -> List[str]:
    """
    Split one line into trimmed field values.

    A double quote toggles quoted mode, two double quotes inside a quoted field
    produce one literal quote, and the delimiter is literal while quoted.
    Malformed quoting never raises: an unterminated quote simply keeps the rest
    of the line in the current field.

    Args:
        line: A single line of text, without line terminator
        delimiter: Single-character field delimiter

    Returns:
        Field values in column order
    """
    values: List[str] = []
    current: List[str] = []
    in_quotes = False
    i = 0
    length = len(line)

    while i < length:
        char = line[i]
        if char == QUOTE:
            if in_quotes and i + 1 < length and line[i + 1] == QUOTE:
                current.append(QUOTE)
                i += 1
            else:
                in_quotes = not in_quotes
        elif char == delimiter and not in_quotes:
            values.append(''.join(current).strip())
            current = []
        else:
            current.append(char)
        i += 1

    values.append(''.join(current).strip())
    return values


def strip_quotes(value: str) -> str:
    """Remove any leftover double quotes and surrounding whitespace."""
    return value.replace(QUOTE, '').strip()


def split_header(line: str, delimiter: str) -> List[str]:
    """Tokenize a header line into quote-stripped column names."""
    return [strip_quotes(v) for v in split_line(line, delimiter)]
