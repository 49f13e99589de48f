from __future__ import annotations

import logging
from pathlib import Path

from .card import Vcard
from .document import parse_document
from .errors import ParseError

logger = logging.getLogger(__name__)

_BOM = "\ufeff"


# ── Reading ────────────────────────────────────────────────────────────────────

def read_text(path: Path) -> str:
    """Read a .vcf file as UTF-8, keeping its line breaks as they are."""
    text = path.read_bytes().decode("utf-8", errors="replace")
    if text.startswith(_BOM):
        logger.debug("%s: stripped byte order mark", path.name)
        text = text[1:]
    return text


def read_vcards(path: Path, *, strict: bool = False) -> list[Vcard | ParseError]:
    """Parse every card in one file. MalformedDocument propagates."""
    results = parse_document(read_text(path), strict=strict)
    logger.debug("%s: %d card(s)", path.name, len(results))
    return results


def read_vcards_from_files(
    paths: list[Path],
    *,
    strict: bool = False,
) -> list[tuple[Vcard | ParseError, str]]:
    """Parse all files and return (card or error, source_label) pairs."""
    results: list[tuple[Vcard | ParseError, str]] = []
    for p in paths:
        results.extend((item, p.name) for item in read_vcards(p, strict=strict))
    return results


def collect_sources(paths: list[Path]) -> list[Path]:
    """Expand directories to the .vcf files directly inside them.

    Files given explicitly are kept whatever their suffix; missing paths are
    skipped with a warning.
    """
    found: list[Path] = []
    for p in paths:
        if p.is_dir():
            found.extend(sorted(f for f in p.iterdir() if f.is_file() and f.suffix.lower() == ".vcf"))
        elif p.is_file():
            found.append(p)
        else:
            logger.warning("No such file or directory: %s", p)
    return found


# ── Writing ────────────────────────────────────────────────────────────────────

def render_vcards(cards: list[Vcard], newline: str | None = None) -> str:
    return "".join(card.to_text(newline) for card in cards)


def write_vcards(cards: list[Vcard], path: Path, newline: str | None = None) -> int:
    """Serialise cards to ``path`` and return how many were written."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_vcards(cards, newline), encoding="utf-8", newline="")
    return len(cards)
