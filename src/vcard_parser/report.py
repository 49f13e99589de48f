from __future__ import annotations

from dataclasses import dataclass, field

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .card import Vcard
from .errors import ParseError, VcardError

console = Console()

# ── Palette ────────────────────────────────────────────────────────────────────
_ACCENT  = "#4d9fff"
_GREEN   = "#3ecf8e"
_AMBER   = "#f0a500"
_RED     = "#f05c5c"
_TEXT    = "#c9d1e0"
_DIM     = "#546075"
_BORDER  = "#2a3347"


@dataclass
class FileReport:
    label: str
    items: list[Vcard | ParseError] = field(default_factory=list)
    failure: VcardError | None = None

    @property
    def cards(self) -> list[Vcard]:
        return [item for item in self.items if isinstance(item, Vcard)]

    @property
    def problem_count(self) -> int:
        """Cards that failed to parse, failed validation or lost properties."""
        if self.failure is not None:
            return 1
        return sum(
            1 for item in self.items
            if not isinstance(item, Vcard) or item.errors or item.rejected
        )


def _problems(item: Vcard | ParseError) -> list[tuple[str, str]]:
    if not isinstance(item, Vcard):
        return [(str(item), _RED)]
    lines = [(str(err), _AMBER) for err in item.errors]
    lines += [(f"dropped {line!r}: {err}", _RED) for line, err in item.rejected]
    return lines


def print_file_report(report: FileReport, out: Console | None = None) -> None:
    out = out or console
    out.print()
    header = Text()
    header.append(f"  {report.label}", style=f"bold {_TEXT}")
    header.append(f"  {len(report.items)} card(s)", style=f"dim {_DIM}")
    out.print(header)

    if report.failure is not None:
        out.print(Text(f"    {report.failure}", style=f"bold {_RED}"))
        return

    table = Table(show_header=True, header_style="bold", box=None, padding=(0, 2))
    table.add_column("#", justify="right", style=_DIM)
    table.add_column("FN")
    table.add_column("Props", justify="right")
    table.add_column("Problems")
    for index, item in enumerate(report.items, start=1):
        problems = _problems(item)
        body = Text()
        for i, (message, colour) in enumerate(problems):
            if i:
                body.append("\n")
            body.append(message, style=colour)
        if not problems:
            body.append("ok", style=_GREEN)
        if isinstance(item, Vcard):
            table.add_row(str(index), Text(item.fn or "(no FN)"), str(len(item)), body)
        else:
            table.add_row(str(index), "-", "-", body)
    out.print(table)


def print_summary(reports: list[FileReport], out: Console | None = None) -> None:
    out = out or console
    cards = sum(len(r.cards) for r in reports)
    problems = sum(r.problem_count for r in reports)

    body = Text()
    if problems:
        body.append(f"✗  {problems} card(s) with problems\n", style=f"bold {_RED}")
    else:
        body.append("✓  All cards valid\n", style=f"bold {_GREEN}")
    body.append(f"{cards} card(s) parsed from {len(reports)} file(s)", style=f"dim {_ACCENT}")
    out.print()
    out.print(Panel(body, border_style=_RED if problems else _BORDER, padding=(0, 2)))
