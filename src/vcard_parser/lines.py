from __future__ import annotations

import logging

from .errors import MalformedLine

logger = logging.getLogger(__name__)

CRLF = "\r\n"
LF = "\n"

# RFC 6350 §3.2: lines SHOULD NOT be longer than 75 octets, excluding the line break.
FOLD_WIDTH = 75

_CONTINUATION = (" ", "\t")


def detect_newline(text: str) -> str:
    """Return the line break style used by the first line of ``text``."""
    index = text.find("\n")
    if index > 0 and text[index - 1] == "\r":
        return CRLF
    if index >= 0:
        return LF
    return CRLF


def physical_lines(text: str) -> list[str]:
    """Split text on CRLF or LF, dropping the break itself."""
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def unfold(text: str) -> list[str]:
    """Join folded physical lines into logical lines.

    A physical line starting with a single space or tab continues the previous
    logical line; exactly that one whitespace character is removed.
    """
    logical: list[str] = []
    for number, line in enumerate(physical_lines(text), start=1):
        if line[:1] in _CONTINUATION:
            if not logical:
                raise MalformedLine(line, f"continuation on line {number} has no preceding line")
            logical[-1] += line[1:]
        else:
            logical.append(line)
    logger.debug("unfolded %d logical line(s)", len(logical))
    return logical


def fold_line(line: str, newline: str = CRLF, width: int = FOLD_WIDTH) -> str:
    """Fold one logical line so no physical line exceeds ``width`` octets.

    Continuation lines carry a leading space which counts toward the width.
    Multi-byte UTF-8 sequences are never split.
    """
    if len(line.encode("utf-8")) <= width:
        return line

    parts: list[str] = []
    current: list[str] = []
    used = 0
    limit = width
    for char in line:
        size = len(char.encode("utf-8"))
        if used + size > limit and current:
            parts.append("".join(current))
            current = []
            used = 0
            limit = width - 1
        current.append(char)
        used += size
    parts.append("".join(current))
    return (newline + " ").join(parts)


def fold(lines: list[str], newline: str = CRLF, width: int = FOLD_WIDTH) -> str:
    """Fold and join logical lines, terminating each with ``newline``."""
    return "".join(fold_line(line, newline, width) + newline for line in lines)
