from __future__ import annotations

import itertools
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from uuid import uuid4

from .errors import InvalidParameter, InvalidValue, ParameterNotAllowed
from .escaping import encode_param_value
from .lines import CRLF, fold_line
from .schema import LEVELS, ParameterKind, PropertyType, rule_for
from .tokenizer import RawProperty, tokenize
from .values import Value, interpret, parse_language_tag

IdentityFactory = Callable[[], str]

_RE_PID = re.compile(r"[0-9]+(?:\.[0-9]+)?")
_RE_PREF = re.compile(r"[0-9]+")


def uuid_identities() -> str:
    """Default identity source: a random UUID per property."""
    return str(uuid4())


def counter_identities(prefix: str = "p") -> IdentityFactory:
    """Return a factory handing out ``p1``, ``p2``, ... from its own counter."""
    counter = itertools.count(1)
    return lambda: f"{prefix}{next(counter)}"


@dataclass(frozen=True)
class Parameter:
    name: str
    values: tuple[str, ...]

    @property
    def kind(self) -> ParameterKind:
        return ParameterKind.lookup(self.name)

    def render(self) -> str:
        return f"{self.name}={','.join(encode_param_value(v) for v in self.values)}"


def _merge_parameters(raw: list[tuple[str, list[str]]]) -> tuple[Parameter, ...]:
    """Fold repeated parameter names into one entry, in first-seen order."""
    merged: dict[str, tuple[str, list[str]]] = {}
    for name, values in raw:
        key = name.upper()
        if key in merged:
            merged[key][1].extend(values)
        else:
            merged[key] = (name, list(values))
    return tuple(Parameter(name, tuple(values)) for name, values in merged.values())


def _check_parameters(property_type: PropertyType, name: str, parameters: tuple[Parameter, ...]) -> None:
    rule = rule_for(property_type)
    for param in parameters:
        kind = param.kind
        if not rule.allows(kind):
            raise ParameterNotAllowed(param.name, name)
        joined = ",".join(param.values)
        if kind is ParameterKind.PREF:
            pref = param.values[0] if len(param.values) == 1 else ""
            if not _RE_PREF.fullmatch(pref) or not 1 <= int(pref) <= 100:
                raise InvalidParameter(param.name, joined)
        elif kind is ParameterKind.PID:
            if not all(_RE_PID.fullmatch(v) for v in param.values):
                raise InvalidParameter(param.name, joined)
        elif kind is ParameterKind.LANGUAGE:
            if len(param.values) != 1:
                raise InvalidParameter(param.name, joined)
            try:
                parse_language_tag(param.values[0])
            except InvalidValue as exc:
                raise InvalidParameter(param.name, joined) from exc
        elif kind is ParameterKind.LEVEL and property_type in LEVELS:
            if len(param.values) != 1 or param.values[0].upper() not in LEVELS[property_type]:
                raise InvalidParameter(param.name, joined)


@dataclass(frozen=True)
class Property:
    """One parsed content line.

    Instances only come out of :meth:`construct` or :meth:`replace_value`, so
    every live property has passed the tokenizer, the parameter checks and the
    value interpreter. ``identity`` is fixed for the life of the property and
    survives :meth:`replace_value`.
    """

    identity: str
    type: PropertyType
    name: str
    value: Value
    group: str | None = None
    parameters: tuple[Parameter, ...] = ()
    # value text as written; extensions are re-emitted from it verbatim
    source_value: str = field(default="", compare=False, repr=False)

    @classmethod
    def construct(cls, raw_line: str, identities: IdentityFactory = uuid_identities) -> Property:
        """Parse one logical line into a property with a fresh identity."""
        return cls._build(tokenize(raw_line), identities())

    @classmethod
    def _build(cls, raw: RawProperty, identity: str) -> Property:
        property_type = PropertyType.lookup(raw.name)
        parameters = _merge_parameters(raw.parameters)
        _check_parameters(property_type, raw.name, parameters)
        value = interpret(property_type, parameters, raw.value, name=raw.name)
        return cls(
            identity=identity,
            type=property_type,
            name=raw.name,
            value=value,
            group=raw.group,
            parameters=parameters,
            source_value=raw.value,
        )

    def replace_value(self, raw_line: str) -> Property:
        """Re-parse ``raw_line`` into a new property carrying this identity."""
        return self._build(tokenize(raw_line), self.identity)

    def with_parameter(self, name: str, *values: str) -> Property:
        """A copy with one more parameter, re-checked like any parsed line."""
        raw = RawProperty(
            name=self.name,
            value=self.source_value,
            group=self.group,
            parameters=[(p.name, list(p.values)) for p in self.parameters] + [(name, list(values))],
        )
        return self._build(raw, self.identity)

    # ── Lookups ──────────────────────────────────────────────────────────────

    def param(self, name: str) -> tuple[str, ...]:
        """Values of the named parameter, or an empty tuple."""
        key = name.upper()
        for param in self.parameters:
            if param.name.upper() == key:
                return param.values
        return ()

    @property
    def altid(self) -> str | None:
        values = self.param("ALTID")
        return values[0] if values else None

    @property
    def pref(self) -> int | None:
        values = self.param("PREF")
        return int(values[0]) if values else None

    # ── Serialisation ────────────────────────────────────────────────────────

    def logical_line(self) -> str:
        head = f"{self.group}.{self.name}" if self.group else self.name
        params = "".join(f";{param.render()}" for param in self.parameters)
        if self.type is PropertyType.EXTENSION:
            text = self.source_value
        else:
            text = self.value.to_text()
        return f"{head}{params}:{text}"

    def render(self, newline: str = CRLF) -> str:
        """Folded content line, without the trailing line break."""
        return fold_line(self.logical_line(), newline)
