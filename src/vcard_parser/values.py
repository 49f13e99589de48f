"""Typed property values and the type-directed interpreter.

``interpret`` picks a :class:`ValueKind` from the property type (or an
allowed ``VALUE=`` override) and parses the raw value text into one of the
value classes below. Text-like kinds are unescaped here; list and structured
kinds are split on unescaped delimiters first.
"""
from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar, Union
from urllib.parse import urlsplit

from .datetimes import (
    DateTimeValue,
    DateValue,
    TimeValue,
    UtcOffsetValue,
    parse_date,
    parse_date_and_or_time,
    parse_date_time,
    parse_time,
    parse_timestamp,
    parse_utc_offset,
)
from .errors import InvalidValue, UnknownValueType
from .escaping import escape_text, split_unescaped, unescape_text
from .schema import VALUE_TYPE_NAMES, ParameterKind, PropertyRule, PropertyType, ValueKind, rule_for

if TYPE_CHECKING:
    from .model import Parameter

_RE_SCHEME = re.compile(r"[A-Za-z][A-Za-z0-9+.-]*:")
_RE_INTEGER = re.compile(r"[+-]?[0-9]+")
_RE_FLOAT = re.compile(r"[+-]?[0-9]+(?:\.[0-9]+)?")
_RE_LANGUAGE_TAG = re.compile(r"[A-Za-z]{1,8}(?:-[A-Za-z0-9]{1,8})*")
_RE_SOURCE_ID = re.compile(r"0*[1-9][0-9]*")
_INT64 = 2 ** 63

GENDER_SEXES = frozenset({"", "M", "F", "O", "N", "U"})


@dataclass(frozen=True)
class TextValue:
    kind: ClassVar[ValueKind] = ValueKind.TEXT

    text: str

    def to_text(self) -> str:
        return escape_text(self.text)


@dataclass(frozen=True)
class TextListValue:
    kind: ClassVar[ValueKind] = ValueKind.TEXT_LIST

    items: tuple[str, ...]
    delimiter: str = ","

    def to_text(self) -> str:
        return self.delimiter.join(escape_text(item) for item in self.items)


def _components(raw: str, count: int, kind: ValueKind) -> list[tuple[str, ...]]:
    parts = split_unescaped(raw, ";")
    if len(parts) > count:
        raise InvalidValue(kind.value, raw, f"expected at most {count} components, got {len(parts)}")
    parts += [""] * (count - len(parts))
    return [
        tuple(unescape_text(p) for p in split_unescaped(part, ",")) if part else ()
        for part in parts
    ]


def _render_components(components: Iterable[tuple[str, ...]]) -> str:
    return ";".join(",".join(escape_text(v) for v in component) for component in components)


@dataclass(frozen=True)
class StructuredNameValue:
    kind: ClassVar[ValueKind] = ValueKind.STRUCTURED_NAME

    family: tuple[str, ...] = ()
    given: tuple[str, ...] = ()
    additional: tuple[str, ...] = ()
    prefixes: tuple[str, ...] = ()
    suffixes: tuple[str, ...] = ()

    @classmethod
    def parse(cls, raw: str) -> StructuredNameValue:
        return cls(*_components(raw, 5, cls.kind))

    def to_text(self) -> str:
        return _render_components(
            (self.family, self.given, self.additional, self.prefixes, self.suffixes)
        )


@dataclass(frozen=True)
class StructuredAddressValue:
    kind: ClassVar[ValueKind] = ValueKind.STRUCTURED_ADDRESS

    po_box: tuple[str, ...] = ()
    extended: tuple[str, ...] = ()
    street: tuple[str, ...] = ()
    locality: tuple[str, ...] = ()
    region: tuple[str, ...] = ()
    postal_code: tuple[str, ...] = ()
    country: tuple[str, ...] = ()

    @classmethod
    def parse(cls, raw: str) -> StructuredAddressValue:
        return cls(*_components(raw, 7, cls.kind))

    def to_text(self) -> str:
        return _render_components((
            self.po_box, self.extended, self.street, self.locality,
            self.region, self.postal_code, self.country,
        ))


@dataclass(frozen=True)
class UriValue:
    kind: ClassVar[ValueKind] = ValueKind.URI

    uri: str

    @property
    def scheme(self) -> str:
        return self.uri.split(":", 1)[0].lower()

    def to_text(self) -> str:
        return self.uri


@dataclass(frozen=True)
class ClientPidMapValue:
    kind: ClassVar[ValueKind] = ValueKind.CLIENT_PID_MAP

    source_id: int
    uri: str

    def to_text(self) -> str:
        return f"{self.source_id};{self.uri}"


@dataclass(frozen=True)
class BooleanValue:
    kind: ClassVar[ValueKind] = ValueKind.BOOLEAN

    value: bool
    lexical: str | None = field(default=None, compare=False, repr=False)

    def to_text(self) -> str:
        return self.lexical if self.lexical is not None else ("TRUE" if self.value else "FALSE")


@dataclass(frozen=True)
class IntegerValue:
    kind: ClassVar[ValueKind] = ValueKind.INTEGER

    value: int
    lexical: str | None = field(default=None, compare=False, repr=False)

    def to_text(self) -> str:
        return self.lexical if self.lexical is not None else str(self.value)


@dataclass(frozen=True)
class FloatValue:
    kind: ClassVar[ValueKind] = ValueKind.FLOAT

    value: float
    lexical: str | None = field(default=None, compare=False, repr=False)

    def to_text(self) -> str:
        return self.lexical if self.lexical is not None else repr(self.value)


@dataclass(frozen=True)
class LanguageTagValue:
    kind: ClassVar[ValueKind] = ValueKind.LANGUAGE_TAG

    tag: str

    def to_text(self) -> str:
        return self.tag


Value = Union[
    TextValue,
    TextListValue,
    StructuredNameValue,
    StructuredAddressValue,
    ClientPidMapValue,
    BooleanValue,
    IntegerValue,
    FloatValue,
    DateValue,
    TimeValue,
    DateTimeValue,
    UtcOffsetValue,
    UriValue,
    LanguageTagValue,
]


# ── Kind parsers ───────────────────────────────────────────────────────────────

def _check_geo(uri: str) -> None:
    coordinates = uri.split(":", 1)[1].split(";", 1)[0].split(",")
    if len(coordinates) not in (2, 3) or not all(_RE_FLOAT.fullmatch(c) for c in coordinates):
        raise InvalidValue(ValueKind.URI.value, uri, "geo URI needs numeric coordinates")


def parse_uri(raw: str) -> UriValue:
    if not _RE_SCHEME.match(raw):
        raise InvalidValue(ValueKind.URI.value, raw, "missing URI scheme")
    try:
        urlsplit(raw)
    except ValueError as exc:
        raise InvalidValue(ValueKind.URI.value, raw, str(exc)) from exc
    value = UriValue(raw)
    if value.scheme == "geo":
        _check_geo(raw)
    return value


def parse_integer(raw: str) -> IntegerValue:
    if not _RE_INTEGER.fullmatch(raw):
        raise InvalidValue(ValueKind.INTEGER.value, raw)
    number = int(raw)
    if not -_INT64 <= number < _INT64:
        raise InvalidValue(ValueKind.INTEGER.value, raw, "out of range")
    return IntegerValue(number, lexical=raw)


def parse_float(raw: str) -> FloatValue:
    if not _RE_FLOAT.fullmatch(raw):
        raise InvalidValue(ValueKind.FLOAT.value, raw)
    return FloatValue(float(raw), lexical=raw)


def parse_boolean(raw: str) -> BooleanValue:
    upper = raw.upper()
    if upper not in ("TRUE", "FALSE"):
        raise InvalidValue(ValueKind.BOOLEAN.value, raw)
    return BooleanValue(upper == "TRUE", lexical=raw)


def parse_language_tag(raw: str) -> LanguageTagValue:
    if not _RE_LANGUAGE_TAG.fullmatch(raw):
        raise InvalidValue(ValueKind.LANGUAGE_TAG.value, raw)
    return LanguageTagValue(raw)


def parse_client_pid_map(raw: str) -> ClientPidMapValue:
    source, sep, uri = raw.partition(";")
    if not sep or not _RE_SOURCE_ID.fullmatch(source):
        raise InvalidValue(ValueKind.CLIENT_PID_MAP.value, raw, "expected 'source-id;uri'")
    return ClientPidMapValue(int(source), parse_uri(uri).uri)


def _parse_text_list(raw: str, rule: PropertyRule) -> TextListValue:
    return TextListValue(
        tuple(unescape_text(item) for item in split_unescaped(raw, rule.delimiter)),
        delimiter=rule.delimiter,
    )


_PARSERS = {
    ValueKind.TEXT: lambda raw, rule: TextValue(unescape_text(raw)),
    ValueKind.TEXT_LIST: _parse_text_list,
    ValueKind.STRUCTURED_NAME: lambda raw, rule: StructuredNameValue.parse(raw),
    ValueKind.STRUCTURED_ADDRESS: lambda raw, rule: StructuredAddressValue.parse(raw),
    ValueKind.CLIENT_PID_MAP: lambda raw, rule: parse_client_pid_map(raw),
    ValueKind.BOOLEAN: lambda raw, rule: parse_boolean(raw),
    ValueKind.INTEGER: lambda raw, rule: parse_integer(raw),
    ValueKind.FLOAT: lambda raw, rule: parse_float(raw),
    ValueKind.DATE: lambda raw, rule: parse_date(raw),
    ValueKind.TIME: lambda raw, rule: parse_time(raw),
    ValueKind.DATE_TIME: lambda raw, rule: parse_date_time(raw),
    ValueKind.DATE_AND_OR_TIME: lambda raw, rule: parse_date_and_or_time(raw),
    ValueKind.TIMESTAMP: lambda raw, rule: parse_timestamp(raw),
    ValueKind.URI: lambda raw, rule: parse_uri(raw),
    ValueKind.LANGUAGE_TAG: lambda raw, rule: parse_language_tag(raw),
    ValueKind.UTC_OFFSET: lambda raw, rule: parse_utc_offset(raw),
}


# ── Interpreter ────────────────────────────────────────────────────────────────

def resolve_kind(
    property_type: PropertyType,
    parameters: Iterable[Parameter] = (),
    name: str | None = None,
) -> ValueKind:
    """Pick the value kind for a property, honouring a VALUE parameter."""
    rule = rule_for(property_type)
    declared = next((p.values for p in parameters if p.kind is ParameterKind.VALUE), None)
    if declared is None:
        return rule.default

    name = name or property_type.value
    type_name = ",".join(declared).lower()
    if type_name not in VALUE_TYPE_NAMES:
        if property_type is PropertyType.EXTENSION:
            return rule.default
        raise UnknownValueType(type_name, name)
    kind = rule.kind_for(type_name)
    if kind is None:
        raise UnknownValueType(type_name, name)
    return kind


def interpret(
    property_type: PropertyType,
    parameters: Iterable[Parameter],
    raw: str,
    name: str | None = None,
) -> Value:
    """Parse ``raw`` into the typed value dictated by the property and its VALUE parameter."""
    parameters = list(parameters)
    kind = resolve_kind(property_type, parameters, name)
    value = _PARSERS[kind](raw, rule_for(property_type))

    if property_type is PropertyType.GENDER and value.items[0].upper() not in GENDER_SEXES:
        raise InvalidValue("gender", raw, "sex must be one of M, F, O, N, U or empty")
    return value
