from __future__ import annotations

import logging

from .card import BEGIN, END, Vcard, is_marker
from .errors import MalformedDocument, ParseError
from .lines import detect_newline, unfold
from .model import IdentityFactory

logger = logging.getLogger(__name__)


def split_blocks(lines: list[str]) -> list[list[str]]:
    """Slice logical lines into BEGIN:VCARD ... END:VCARD blocks.

    Raises MalformedDocument when blocks are nested or unbalanced. Non-blank
    text between blocks is logged and ignored.
    """
    blocks: list[list[str]] = []
    current: list[str] | None = None
    for line in lines:
        if is_marker(line, BEGIN):
            if current is not None:
                raise MalformedDocument("BEGIN:VCARD inside an unterminated card")
            current = [line]
        elif is_marker(line, END):
            if current is None:
                raise MalformedDocument("END:VCARD without a matching BEGIN:VCARD")
            current.append(line)
            blocks.append(current)
            current = None
        elif current is not None:
            current.append(line)
        elif line.strip():
            logger.warning("Ignoring text outside a vCard block: %r", line)
    if current is not None:
        raise MalformedDocument("missing END:VCARD at end of input")
    logger.debug("found %d vCard block(s)", len(blocks))
    return blocks


def parse_document(
    text: str,
    *,
    strict: bool = True,
    identities: IdentityFactory | None = None,
    client: str | None = None,
) -> list[Vcard | ParseError]:
    """Parse every card in ``text``.

    Each block yields either a Vcard or the ParseError that stopped it; one
    bad card does not affect the others. With ``client`` set, every card is
    opened for that client (see :meth:`Vcard.attach_client`).
    """
    newline = detect_newline(text)
    results: list[Vcard | ParseError] = []
    for block in split_blocks(unfold(text)):
        try:
            results.append(
                Vcard.from_lines(block, strict=strict, identities=identities, newline=newline, client=client)
            )
        except ParseError as exc:
            logger.debug("card rejected: %s", exc)
            results.append(exc)
    return results
