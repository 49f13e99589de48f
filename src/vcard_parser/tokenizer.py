"""Split one logical content line into group, name, parameters and raw value.

    [group "."] name *(";" param) ":" value

Given:

    item1.EMAIL;TYPE="work,internet";PREF=1:jane@example.com

the tokenizer yields ``RawProperty(group="item1", name="EMAIL",
parameters=[("TYPE", ["work,internet"]), ("PREF", ["1"])],
value="jane@example.com")``. The value is left exactly as written; escapes in
it are interpreted later, once the property type is known.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field

from .errors import MalformedLine
from .escaping import decode_param_value
from .schema import ParameterKind, PropertyType

_RE_NAME = re.compile(r"[A-Za-z0-9-]+")
_PARAM_END = (",", ";", ":")


@dataclass
class RawProperty:
    name: str
    value: str
    group: str | None = None
    parameters: list[tuple[str, list[str]]] = field(default_factory=list)


def _canonical_property_name(name: str) -> str:
    if PropertyType.lookup(name) is PropertyType.EXTENSION:
        return name
    return name.upper()


def _canonical_parameter_name(name: str) -> str:
    if ParameterKind.lookup(name) in (ParameterKind.X_PARAM, ParameterKind.UNKNOWN):
        return name
    return name.upper()


def _read_parameter_values(line: str, pos: int) -> tuple[list[str], int]:
    """Read a comma separated parameter value list starting at ``pos``.

    Returns the values and the position of the terminating ``;`` or ``:``.
    """
    values: list[str] = []
    end = len(line)
    while True:
        if pos < end and line[pos] == '"':
            close = line.find('"', pos + 1)
            if close < 0:
                raise MalformedLine(line, "unterminated quoted parameter value")
            values.append(decode_param_value(line[pos + 1:close]))
            pos = close + 1
            if pos >= end or line[pos] not in _PARAM_END:
                raise MalformedLine(line, "expected ',', ';' or ':' after quoted parameter value")
        else:
            chars: list[str] = []
            while pos < end and line[pos] not in _PARAM_END:
                if line[pos] == "\\" and pos + 1 < end and line[pos + 1] in _PARAM_END:
                    chars.append(line[pos + 1])
                    pos += 2
                    continue
                if line[pos] == '"':
                    raise MalformedLine(line, "quote inside unquoted parameter value")
                chars.append(line[pos])
                pos += 1
            if pos >= end:
                raise MalformedLine(line, "no ':' separating the value")
            values.append(decode_param_value("".join(chars)))
        if line[pos] != ",":
            return values, pos
        pos += 1


def tokenize(line: str) -> RawProperty:
    """Tokenize a single unfolded content line."""
    end = len(line)
    pos = 0
    while pos < end and line[pos] not in (";", ":"):
        pos += 1
    if pos >= end:
        raise MalformedLine(line, "no ':' separating the value")

    group, dot, name = line[:pos].partition(".")
    if not dot:
        group, name = None, group
    if not name:
        raise MalformedLine(line, "empty property name")
    if not _RE_NAME.fullmatch(name):
        raise MalformedLine(line, f"invalid property name {name!r}")
    if group is not None and not _RE_NAME.fullmatch(group):
        raise MalformedLine(line, f"invalid group name {group!r}")

    parameters: list[tuple[str, list[str]]] = []
    while line[pos] == ";":
        start = pos + 1
        equals = start
        while equals < end and line[equals] not in ("=", ";", ":"):
            equals += 1
        if equals >= end or line[equals] != "=":
            raise MalformedLine(line, "parameter without '='")
        param_name = line[start:equals]
        if not _RE_NAME.fullmatch(param_name):
            raise MalformedLine(line, f"invalid parameter name {param_name!r}")
        values, pos = _read_parameter_values(line, equals + 1)
        parameters.append((_canonical_parameter_name(param_name), values))

    return RawProperty(
        name=_canonical_property_name(name),
        value=line[pos + 1:],
        group=group,
        parameters=parameters,
    )
