from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass
from pathlib import Path

from .lines import CRLF, LF

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = Path("vcard.toml")

LINE_ENDINGS: dict[str, str | None] = {"preserve": None, "crlf": CRLF, "lf": LF}

DEFAULT_CONF = """# vcard-parser configuration (TOML)
strict = false
line_ending = "preserve"
"""


@dataclass
class Settings:
    strict: bool = False
    line_ending: str = "preserve"

    @property
    def newline(self) -> str | None:
        """Line break to write with, or None to keep each card's own."""
        return LINE_ENDINGS[self.line_ending]


def load_settings(path: Path | None = None) -> Settings:
    """Read settings from ``path`` (default ``vcard.toml`` in the working directory).

    A missing file gives the defaults, as does a malformed one after a warning.
    """
    conf = Path(path) if path is not None else DEFAULT_CONFIG_FILE
    settings = Settings()
    if not conf.is_file():
        logger.debug("no config at %s, using defaults", conf)
        return settings

    try:
        data = tomllib.loads(conf.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError) as exc:
        logger.warning("Ignoring malformed config %s: %s", conf, exc)
        return settings

    strict = data.get("strict", settings.strict)
    if isinstance(strict, bool):
        settings.strict = strict
    else:
        logger.warning("%s: 'strict' must be true or false, got %r", conf, strict)

    line_ending = str(data.get("line_ending", settings.line_ending)).lower()
    if line_ending in LINE_ENDINGS:
        settings.line_ending = line_ending
    else:
        logger.warning("%s: unknown line_ending %r, keeping %r", conf, line_ending, settings.line_ending)
    return settings


def write_default_config(path: Path = DEFAULT_CONFIG_FILE) -> bool:
    """Create a commented default config unless one exists. Returns True if written."""
    if path.exists():
        return False
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(DEFAULT_CONF, encoding="utf-8")
    return True
