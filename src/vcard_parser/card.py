"""The Vcard: one BEGIN:VCARD ... END:VCARD block as an ordered property list."""
from __future__ import annotations

import logging
from collections.abc import Iterator

from .errors import FnRequired, MalformedDocument, NotFound, ParseError, ValidationError
from .escaping import escape_text
from .lines import CRLF, detect_newline, unfold
from .model import IdentityFactory, Property, uuid_identities
from .schema import ParameterKind, PropertyType, rule_for
from .validate import SUPPORTED_VERSION, validate

logger = logging.getLogger(__name__)

BEGIN = "BEGIN:VCARD"
END = "END:VCARD"


def is_marker(line: str, marker: str) -> bool:
    return line.strip().upper() == marker


class Vcard:
    """An ordered, editable sequence of properties.

    Properties keep their parse order. Every edit goes through the same
    parse pipeline as parsed text and re-runs validation, so ``errors``
    always describes the current state of the card.

    A card opened for a ``client`` (a URI naming the editing application)
    carries a CLIENTPIDMAP entry for it, and multi-instance properties added
    later get a ``PID=<n>.<source-id>`` pointing at that entry.
    """

    def __init__(
        self,
        properties: list[Property] | None = None,
        *,
        identities: IdentityFactory | None = None,
        newline: str = CRLF,
        client: str | None = None,
    ):
        self._properties: list[Property] = list(properties or [])
        self._identities = identities or uuid_identities
        self.newline = newline
        self.client: str | None = None
        self.rejected: list[tuple[str, ParseError]] = []
        self.errors: list[ValidationError] = validate(self._properties)
        if client is not None:
            self.attach_client(client)

    # ── Construction ─────────────────────────────────────────────────────────

    @classmethod
    def from_text(
        cls, text: str, *, identities: IdentityFactory | None = None, client: str | None = None
    ) -> Vcard:
        """Parse a single card; any unparseable property raises."""
        return cls.from_lines(
            unfold(text), strict=True, identities=identities, newline=detect_newline(text), client=client
        )

    @classmethod
    def from_text_lenient(
        cls, text: str, *, identities: IdentityFactory | None = None, client: str | None = None
    ) -> Vcard:
        """Parse a single card, dropping unparseable properties into ``rejected``."""
        return cls.from_lines(
            unfold(text), strict=False, identities=identities, newline=detect_newline(text), client=client
        )

    @classmethod
    def from_lines(
        cls,
        lines: list[str],
        *,
        strict: bool = True,
        identities: IdentityFactory | None = None,
        newline: str = CRLF,
        client: str | None = None,
    ) -> Vcard:
        """Build a card from already unfolded logical lines, BEGIN and END included."""
        body = [line for line in lines if line.strip()]
        if not body or not is_marker(body[0], BEGIN):
            raise MalformedDocument("card does not start with BEGIN:VCARD")
        if len(body) < 2 or not is_marker(body[-1], END):
            raise MalformedDocument("card does not end with END:VCARD")

        identities = identities or uuid_identities
        properties: list[Property] = []
        rejected: list[tuple[str, ParseError]] = []
        for line in body[1:-1]:
            if is_marker(line, BEGIN) or is_marker(line, END):
                raise MalformedDocument(f"unexpected {line.strip()} inside a card")
            try:
                properties.append(Property.construct(line, identities))
            except ParseError as exc:
                if strict:
                    raise
                logger.warning("Dropped property %r: %s", line, exc)
                rejected.append((line, exc))

        card = cls(properties, identities=identities, newline=newline, client=client)
        card.rejected = rejected
        logger.debug("parsed card with %d property(ies), %d rejected", len(properties), len(rejected))
        return card

    @classmethod
    def new(cls, fn: str, *, identities: IdentityFactory | None = None, client: str | None = None) -> Vcard:
        """A minimal valid card: VERSION:4.0 and the given formatted name."""
        card = cls(identities=identities)
        card.add_property(f"VERSION:{SUPPORTED_VERSION}")
        card.add_property(f"FN:{escape_text(fn)}")
        if client is not None:
            card.attach_client(client)
        return card

    # ── Access ───────────────────────────────────────────────────────────────

    @property
    def properties(self) -> tuple[Property, ...]:
        return tuple(self._properties)

    def __iter__(self) -> Iterator[Property]:
        return iter(tuple(self._properties))

    def __len__(self) -> int:
        return len(self._properties)

    def __repr__(self) -> str:
        return f"Vcard(fn={self.fn!r}, properties={len(self._properties)})"

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def fn(self) -> str | None:
        prop = self.first("FN")
        return prop.value.text if prop is not None else None

    def _index(self, identity: str) -> int:
        for index, prop in enumerate(self._properties):
            if prop.identity == identity:
                return index
        raise NotFound(identity)

    def get(self, identity: str) -> Property:
        return self._properties[self._index(identity)]

    def find(self, name: str | PropertyType) -> list[Property]:
        """All properties with the given name, in card order.

        A :class:`PropertyType` matches by type; a string matches the property
        name case-insensitively, so it also finds extension properties.
        """
        if isinstance(name, PropertyType):
            return [p for p in self._properties if p.type is name]
        key = name.upper()
        return [p for p in self._properties if p.name.upper() == key]

    def first(self, name: str | PropertyType) -> Property | None:
        found = self.find(name)
        return found[0] if found else None

    def client_pid_map(self) -> Property | None:
        """The CLIENTPIDMAP entry whose URI is this card's client."""
        if self.client is None:
            return None
        for prop in self.find(PropertyType.CLIENTPIDMAP):
            if prop.value.uri == self.client:
                return prop
        return None

    # ── Client ───────────────────────────────────────────────────────────────

    def attach_client(self, client: str) -> None:
        """Edit on behalf of ``client``, adding its CLIENTPIDMAP entry if missing."""
        self.client = client
        if self.client_pid_map() is not None:
            return
        taken = [p.value.source_id for p in self.find(PropertyType.CLIENTPIDMAP)]
        source_id = max(taken, default=0) + 1
        try:
            prop = Property.construct(f"CLIENTPIDMAP:{source_id};{client}", self._identities)
        except ParseError:
            self.client = None
            raise
        logger.debug("mapped client %s to source id %d", client, source_id)
        self._properties.append(prop)
        self.validate()

    def _next_pid(self, prop: Property) -> str | None:
        mapping = self.client_pid_map()
        if mapping is None or prop.param("PID"):
            return None
        rule = rule_for(prop.type)
        if rule.single or prop.type in (PropertyType.CLIENTPIDMAP, PropertyType.EXTENSION):
            return None
        if not rule.allows(ParameterKind.PID):
            return None
        siblings = self.find(prop.type)
        taken = {pid for sibling in siblings for pid in sibling.param("PID")}
        local = len(siblings) + 1
        while f"{local}.{mapping.value.source_id}" in taken:
            local += 1
        return f"{local}.{mapping.value.source_id}"

    # ── Mutation ─────────────────────────────────────────────────────────────

    def add_property(self, raw_line: str) -> str:
        """Parse ``raw_line``, append it and return the new property's identity.

        With a client attached, a multi-instance property written without a
        PID gets the next free ``<n>.<source-id>``.
        """
        prop = Property.construct(raw_line, self._identities)
        pid = self._next_pid(prop)
        if pid is not None:
            prop = prop.with_parameter("PID", pid)
        self._properties.append(prop)
        self.validate()
        return prop.identity

    def replace_property(self, identity: str, raw_line: str) -> None:
        """Swap the property ``identity`` for ``raw_line``, keeping its identity and position."""
        index = self._index(identity)
        self._properties[index] = self._properties[index].replace_value(raw_line)
        self.validate()

    def remove_property(self, identity: str) -> None:
        index = self._index(identity)
        prop = self._properties[index]
        if prop.type is PropertyType.FN and len(self.find(PropertyType.FN)) == 1:
            raise FnRequired()
        del self._properties[index]
        self.validate()

    def validate(self) -> list[ValidationError]:
        self.errors = validate(self._properties)
        return self.errors

    # ── Serialisation ────────────────────────────────────────────────────────

    def to_text(self, newline: str | None = None) -> str:
        """Serialise the card, folding every line.

        Uses the line break of the parsed source unless ``newline`` is given.
        """
        newline = newline or self.newline
        lines = [BEGIN, *(prop.render(newline) for prop in self._properties), END]
        return "".join(line + newline for line in lines)
