"""Property, parameter and value-kind vocabulary of RFC 6350.

Every known property is described by a :class:`PropertyRule`: its default
value kind, which ``VALUE=`` overrides it accepts, whether it may appear at
most once per card, which known parameters it takes, and the delimiter used
when its value is a list.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass


class PropertyType(enum.Enum):
    ADR = "ADR"
    ANNIVERSARY = "ANNIVERSARY"
    BDAY = "BDAY"
    BIRTHPLACE = "BIRTHPLACE"
    CALADRURI = "CALADRURI"
    CALURI = "CALURI"
    CATEGORIES = "CATEGORIES"
    CLIENTPIDMAP = "CLIENTPIDMAP"
    CONTACT_URI = "CONTACT-URI"
    DEATHDATE = "DEATHDATE"
    DEATHPLACE = "DEATHPLACE"
    EMAIL = "EMAIL"
    EXPERTISE = "EXPERTISE"
    FBURL = "FBURL"
    FN = "FN"
    GENDER = "GENDER"
    GEO = "GEO"
    HOBBY = "HOBBY"
    IMPP = "IMPP"
    INTEREST = "INTEREST"
    KEY = "KEY"
    KIND = "KIND"
    LANG = "LANG"
    LOGO = "LOGO"
    MEMBER = "MEMBER"
    N = "N"
    NICKNAME = "NICKNAME"
    NOTE = "NOTE"
    ORG = "ORG"
    ORG_DIRECTORY = "ORG-DIRECTORY"
    PHOTO = "PHOTO"
    PRODID = "PRODID"
    RELATED = "RELATED"
    REV = "REV"
    ROLE = "ROLE"
    SOUND = "SOUND"
    SOURCE = "SOURCE"
    TEL = "TEL"
    TITLE = "TITLE"
    TZ = "TZ"
    UID = "UID"
    URL = "URL"
    VERSION = "VERSION"
    XML = "XML"
    # x-name and iana-token properties; the raw name lives on the Property
    EXTENSION = "EXTENSION"

    @classmethod
    def lookup(cls, name: str) -> PropertyType:
        return _PROPERTY_NAMES.get(name.upper(), cls.EXTENSION)


_PROPERTY_NAMES = {t.value: t for t in PropertyType if t is not PropertyType.EXTENSION}


class ParameterKind(enum.Enum):
    ALTID = "ALTID"
    CALSCALE = "CALSCALE"
    CC = "CC"
    ENCODING = "ENCODING"
    GEO = "GEO"
    INDEX = "INDEX"
    LABEL = "LABEL"
    LANGUAGE = "LANGUAGE"
    LEVEL = "LEVEL"
    MEDIATYPE = "MEDIATYPE"
    PID = "PID"
    PREF = "PREF"
    SORT_AS = "SORT-AS"
    TYPE = "TYPE"
    TZ = "TZ"
    VALUE = "VALUE"
    X_PARAM = "X-PARAM"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def lookup(cls, name: str) -> ParameterKind:
        upper = name.upper()
        if upper in _PARAMETER_NAMES:
            return _PARAMETER_NAMES[upper]
        if upper.startswith("X-"):
            return cls.X_PARAM
        return cls.UNKNOWN


_PARAMETER_NAMES = {
    k.value: k for k in ParameterKind if k not in (ParameterKind.X_PARAM, ParameterKind.UNKNOWN)
}


class ValueKind(enum.Enum):
    TEXT = "text"
    TEXT_LIST = "text-list"
    STRUCTURED_NAME = "structured-name"
    STRUCTURED_ADDRESS = "structured-address"
    CLIENT_PID_MAP = "clientpidmap"
    BOOLEAN = "boolean"
    INTEGER = "integer"
    FLOAT = "float"
    DATE = "date"
    TIME = "time"
    DATE_TIME = "date-time"
    DATE_AND_OR_TIME = "date-and-or-time"
    TIMESTAMP = "timestamp"
    URI = "uri"
    LANGUAGE_TAG = "language-tag"
    UTC_OFFSET = "utc-offset"

    @property
    def type_name(self) -> str:
        """The name this kind goes by in a ``VALUE=`` parameter."""
        if self in _TEXT_FAMILY:
            return "text"
        return self.value


_TEXT_FAMILY = frozenset({
    ValueKind.TEXT_LIST,
    ValueKind.STRUCTURED_NAME,
    ValueKind.STRUCTURED_ADDRESS,
    ValueKind.CLIENT_PID_MAP,
})

# Names RFC 6350 §5.2 defines for the VALUE parameter.
VALUE_TYPE_NAMES = frozenset({
    "text", "uri", "date", "time", "date-time", "date-and-or-time", "timestamp",
    "boolean", "integer", "float", "utc-offset", "language-tag",
})

# Kinds an extension property may be given through VALUE=.
_SIMPLE_KINDS = (
    ValueKind.URI, ValueKind.DATE, ValueKind.TIME, ValueKind.DATE_TIME,
    ValueKind.DATE_AND_OR_TIME, ValueKind.TIMESTAMP, ValueKind.BOOLEAN,
    ValueKind.INTEGER, ValueKind.FLOAT, ValueKind.UTC_OFFSET, ValueKind.LANGUAGE_TAG,
)


@dataclass(frozen=True)
class PropertyRule:
    default: ValueKind
    alternatives: tuple[ValueKind, ...] = ()
    single: bool = False
    # None means any parameter is accepted
    parameters: frozenset[ParameterKind] | None = frozenset()
    delimiter: str = ","

    def kind_for(self, type_name: str) -> ValueKind | None:
        """Resolve a ``VALUE=`` name to the kind this property uses for it."""
        for kind in (self.default, *self.alternatives):
            if kind.type_name == type_name:
                return kind
        return None

    def allows(self, kind: ParameterKind) -> bool:
        if self.parameters is None or kind in (ParameterKind.X_PARAM, ParameterKind.UNKNOWN):
            return True
        return kind in self.parameters


P = ParameterKind
V = ValueKind

_COMMON = frozenset({P.ALTID, P.PID, P.PREF, P.TYPE, P.VALUE})
_TEXTUAL = _COMMON | {P.LANGUAGE}
_URI = _COMMON | {P.MEDIATYPE}
_MEDIA = _URI | {P.ENCODING, P.LANGUAGE}
_DATES = frozenset({P.VALUE, P.ALTID, P.CALSCALE, P.LANGUAGE})
_DATE_KINDS = (V.DATE, V.DATE_TIME, V.TIME, V.TEXT)
_LEVELLED = _TEXTUAL | {P.LEVEL, P.INDEX}

T = PropertyType

RULES: dict[PropertyType, PropertyRule] = {
    T.ADR: PropertyRule(V.STRUCTURED_ADDRESS, parameters=_TEXTUAL | {P.LABEL, P.GEO, P.TZ, P.CC}, delimiter=";"),
    T.ANNIVERSARY: PropertyRule(V.DATE_AND_OR_TIME, _DATE_KINDS, single=True, parameters=_DATES),
    T.BDAY: PropertyRule(V.DATE_AND_OR_TIME, _DATE_KINDS, single=True, parameters=_DATES),
    T.BIRTHPLACE: PropertyRule(V.TEXT, (V.URI,), single=True, parameters=frozenset({P.VALUE, P.ALTID, P.LANGUAGE})),
    T.CALADRURI: PropertyRule(V.URI, parameters=_URI),
    T.CALURI: PropertyRule(V.URI, parameters=_URI),
    T.CATEGORIES: PropertyRule(V.TEXT_LIST, parameters=_COMMON),
    T.CLIENTPIDMAP: PropertyRule(V.CLIENT_PID_MAP),
    T.CONTACT_URI: PropertyRule(V.URI, parameters=frozenset({P.VALUE, P.PREF})),
    T.DEATHDATE: PropertyRule(V.DATE_AND_OR_TIME, _DATE_KINDS, single=True, parameters=_DATES),
    T.DEATHPLACE: PropertyRule(V.TEXT, (V.URI,), single=True, parameters=frozenset({P.VALUE, P.ALTID, P.LANGUAGE})),
    T.EMAIL: PropertyRule(V.TEXT, parameters=_COMMON),
    T.EXPERTISE: PropertyRule(V.TEXT, parameters=_LEVELLED),
    T.FBURL: PropertyRule(V.URI, parameters=_URI),
    T.FN: PropertyRule(V.TEXT, single=True, parameters=_TEXTUAL),
    T.GENDER: PropertyRule(V.TEXT_LIST, single=True, parameters=frozenset({P.VALUE}), delimiter=";"),
    T.GEO: PropertyRule(V.URI, parameters=_URI),
    T.HOBBY: PropertyRule(V.TEXT, parameters=_LEVELLED),
    T.IMPP: PropertyRule(V.URI, parameters=_URI),
    T.INTEREST: PropertyRule(V.TEXT, parameters=_LEVELLED),
    T.KEY: PropertyRule(V.URI, (V.TEXT,), parameters=_MEDIA),
    T.KIND: PropertyRule(V.TEXT, single=True, parameters=frozenset({P.VALUE})),
    T.LANG: PropertyRule(V.LANGUAGE_TAG, parameters=_COMMON),
    T.LOGO: PropertyRule(V.URI, parameters=_MEDIA),
    T.MEMBER: PropertyRule(V.URI, parameters=_URI),
    T.N: PropertyRule(V.STRUCTURED_NAME, single=True, parameters=frozenset({P.VALUE, P.SORT_AS, P.LANGUAGE, P.ALTID}), delimiter=";"),
    T.NICKNAME: PropertyRule(V.TEXT_LIST, parameters=_TEXTUAL),
    T.NOTE: PropertyRule(V.TEXT, parameters=_TEXTUAL),
    T.ORG: PropertyRule(V.TEXT_LIST, parameters=_TEXTUAL | {P.SORT_AS}, delimiter=";"),
    T.ORG_DIRECTORY: PropertyRule(V.URI, parameters=_TEXTUAL | {P.INDEX}),
    T.PHOTO: PropertyRule(V.URI, parameters=_MEDIA),
    T.PRODID: PropertyRule(V.TEXT, single=True, parameters=frozenset({P.VALUE})),
    T.RELATED: PropertyRule(V.URI, (V.TEXT,), parameters=_TEXTUAL | {P.MEDIATYPE}),
    T.REV: PropertyRule(V.TIMESTAMP, single=True, parameters=frozenset({P.VALUE})),
    T.ROLE: PropertyRule(V.TEXT, parameters=_TEXTUAL),
    T.SOUND: PropertyRule(V.URI, parameters=_MEDIA),
    T.SOURCE: PropertyRule(V.URI, parameters=_URI),
    T.TEL: PropertyRule(V.TEXT, (V.URI,), parameters=_COMMON),
    T.TITLE: PropertyRule(V.TEXT, parameters=_TEXTUAL),
    T.TZ: PropertyRule(V.TEXT, (V.URI, V.UTC_OFFSET), parameters=_URI),
    T.UID: PropertyRule(V.URI, (V.TEXT,), single=True, parameters=frozenset({P.VALUE})),
    T.URL: PropertyRule(V.URI, parameters=_URI),
    T.VERSION: PropertyRule(V.TEXT, single=True, parameters=frozenset({P.VALUE})),
    T.XML: PropertyRule(V.TEXT, parameters=frozenset({P.VALUE, P.ALTID})),
    T.EXTENSION: PropertyRule(V.TEXT, _SIMPLE_KINDS, parameters=None),
}

# RFC 6715 LEVEL values; EXPERTISE also takes the interest scale
_INTEREST_LEVELS = frozenset({"LOW", "MEDIUM", "HIGH"})
LEVELS: dict[PropertyType, frozenset[str]] = {
    T.EXPERTISE: _INTEREST_LEVELS | {"BEGINNER", "AVERAGE", "EXPERT"},
    T.HOBBY: _INTEREST_LEVELS,
    T.INTEREST: _INTEREST_LEVELS,
}

del P, V, T


def rule_for(property_type: PropertyType) -> PropertyRule:
    return RULES[property_type]
