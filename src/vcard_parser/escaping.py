from __future__ import annotations

import re

_NEWLINES = re.compile(r"\r\n")

_UNESCAPE = {"\\": "\\", ",": ",", ";": ";", "n": "\n", "N": "\n"}
_ESCAPE = {"\\": "\\\\", ",": "\\,", ";": "\\;", "\n": "\\n"}

# RFC 6868 parameter value encoding
_CARET_DECODE = {"n": "\n", "^": "^", "'": '"'}
_CARET_ENCODE = {"^": "^^", "\n": "^n", '"': "^'"}

_NEEDS_QUOTES = frozenset(':;,')


def escape_text(value: str) -> str:
    """Escape a text value for the value part of a content line."""
    value = _NEWLINES.sub("\n", value)
    return "".join(_ESCAPE.get(char, char) for char in value)


def unescape_text(raw: str) -> str:
    """Undo text escaping. Unknown escapes are kept verbatim."""
    chars: list[str] = []
    index = 0
    end = len(raw)
    while index < end:
        char = raw[index]
        index += 1
        if char == "\\" and index < end:
            following = raw[index]
            index += 1
            if following in _UNESCAPE:
                chars.append(_UNESCAPE[following])
            else:
                chars.append(char)
                chars.append(following)
        else:
            chars.append(char)
    return "".join(chars)


def split_unescaped(raw: str, separator: str) -> list[str]:
    """Split on ``separator`` wherever it is not preceded by a backslash escape.

    The parts are returned still escaped.
    """
    parts: list[str] = []
    current: list[str] = []
    index = 0
    end = len(raw)
    while index < end:
        char = raw[index]
        if char == "\\" and index + 1 < end:
            current.append(raw[index:index + 2])
            index += 2
            continue
        if char == separator:
            parts.append("".join(current))
            current = []
        else:
            current.append(char)
        index += 1
    parts.append("".join(current))
    return parts


def decode_param_value(raw: str) -> str:
    chars: list[str] = []
    index = 0
    end = len(raw)
    while index < end:
        char = raw[index]
        if char == "^" and index + 1 < end and raw[index + 1] in _CARET_DECODE:
            chars.append(_CARET_DECODE[raw[index + 1]])
            index += 2
            continue
        chars.append(char)
        index += 1
    return "".join(chars)


def encode_param_value(value: str) -> str:
    """Caret-encode a parameter value and quote it when it holds a delimiter."""
    encoded = "".join(_CARET_ENCODE.get(char, char) for char in value)
    if any(char in _NEEDS_QUOTES for char in encoded):
        return f'"{encoded}"'
    return encoded
