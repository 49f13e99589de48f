from __future__ import annotations


class VcardError(Exception):
    """Base class for everything this package raises or reports."""


# ── Parse errors (raised) ──────────────────────────────────────────────────────

class ParseError(VcardError):
    """A property line or a card could not be turned into typed data."""


class MalformedLine(ParseError):
    def __init__(self, line: str, reason: str):
        self.line = line
        self.reason = reason
        super().__init__(f"{reason}: {line!r}")


class InvalidValue(ParseError):
    def __init__(self, kind: str, raw: str, reason: str | None = None):
        self.kind = kind
        self.raw = raw
        self.reason = reason
        msg = f"Invalid {kind} value {raw!r}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)


class UnknownValueType(ParseError):
    def __init__(self, value_type: str, property_name: str):
        self.value_type = value_type
        self.property_name = property_name
        super().__init__(f"Value type {value_type!r} is not supported for {property_name}")


class ParameterNotAllowed(ParseError):
    def __init__(self, parameter: str, property_name: str):
        self.parameter = parameter
        self.property_name = property_name
        super().__init__(f"Parameter {parameter} is not allowed for {property_name}")


class InvalidParameter(ParseError):
    def __init__(self, parameter: str, raw: str):
        self.parameter = parameter
        self.raw = raw
        super().__init__(f"Invalid {parameter} parameter value {raw!r}")


class MalformedDocument(ParseError):
    """BEGIN:VCARD / END:VCARD are missing, nested or unbalanced."""


# ── Validation errors (reported, not raised) ───────────────────────────────────

class ValidationError(VcardError):
    """A structural rule of RFC 6350 is broken by an otherwise parsed card."""


class MissingVersion(ValidationError):
    def __init__(self):
        super().__init__("vCard has no VERSION property")


class UnsupportedVersion(ValidationError):
    def __init__(self, version: str):
        self.version = version
        super().__init__(f"Unsupported vCard version {version!r}, expected '4.0'")


class MissingFn(ValidationError):
    def __init__(self):
        super().__init__("vCard has no FN property")


class CardinalityViolation(ValidationError):
    def __init__(self, property_type, count: int):
        self.property_type = property_type
        self.count = count
        super().__init__(f"{property_type.value} may appear at most once, found {count}")

    def __eq__(self, other):
        if not isinstance(other, CardinalityViolation):
            return NotImplemented
        return self.property_type == other.property_type and self.count == other.count

    def __hash__(self):
        return hash((type(self), self.property_type, self.count))


# ── Lookup / mutation errors ───────────────────────────────────────────────────

class NotFound(VcardError, KeyError):
    def __init__(self, identity: str):
        self.identity = identity
        super().__init__(identity)

    def __str__(self) -> str:
        return f"No property with identity {self.identity!r}"


class FnRequired(VcardError):
    def __init__(self):
        super().__init__("Cannot remove the only FN property")
