from __future__ import annotations

import logging
import sys
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel

from .config import DEFAULT_CONFIG_FILE, Settings, load_settings, write_default_config
from .errors import MalformedDocument, MalformedLine, ParseError
from .io import collect_sources, read_vcards, render_vcards, write_vcards
from .report import FileReport, print_file_report, print_summary

app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help="vcard-parser: parse, validate and reformat RFC 6350 vCard files.",
)
console = Console()
err_console = Console(stderr=True)


def _settings(ctx: typer.Context) -> Settings:
    return ctx.obj if isinstance(ctx.obj, Settings) else Settings()


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log parser progress to stderr"),
    config: Path | None = typer.Option(
        None, "--config", "-c",
        help=f"TOML settings file (default: ./{DEFAULT_CONFIG_FILE})",
    ),
) -> None:
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=err_console, show_path=False)],
            force=True,
        )
    ctx.obj = load_settings(config)


# ── `check` command ────────────────────────────────────────────────────────────

@app.command()
def check(
    ctx: typer.Context,
    files: list[Path] = typer.Argument(..., help=".vcf files or folders to check"),
    strict: bool | None = typer.Option(
        None, "--strict/--lenient",
        help="Reject a whole card on the first bad property (default from config)",
    ),
) -> None:
    """Parse and validate vCard files, reporting every problem found."""
    settings = _settings(ctx)
    effective_strict = settings.strict if strict is None else strict

    sources = collect_sources(files)
    if not sources:
        console.print("[bold red]No .vcf files found.[/bold red]")
        raise typer.Exit(code=2)

    reports: list[FileReport] = []
    for path in sources:
        report = FileReport(label=path.name)
        try:
            report.items = read_vcards(path, strict=effective_strict)
        except (MalformedDocument, MalformedLine) as exc:
            report.failure = exc
        reports.append(report)
        print_file_report(report, console)

    print_summary(reports, console)
    if any(r.problem_count for r in reports):
        raise typer.Exit(code=1)


# ── `format` command ───────────────────────────────────────────────────────────

@app.command("format")
def format_(
    ctx: typer.Context,
    file: Path = typer.Argument(..., help="The .vcf file to reformat"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write here instead of stdout"),
) -> None:
    """Re-serialise a vCard file with canonical folding and parameter quoting."""
    settings = _settings(ctx)
    if not file.is_file():
        err_console.print(f"[bold red]No such file:[/bold red] {file}")
        raise typer.Exit(code=2)

    try:
        items = read_vcards(file, strict=settings.strict)
    except (MalformedDocument, MalformedLine) as exc:
        err_console.print(Panel(str(exc), title=file.name, border_style="red"))
        raise typer.Exit(code=1)

    failures = [item for item in items if isinstance(item, ParseError)]
    for failure in failures:
        err_console.print(f"[red]Skipped card:[/red] {failure}")
    cards = [item for item in items if not isinstance(item, ParseError)]

    if output is None:
        sys.stdout.write(render_vcards(cards, settings.newline))
        sys.stdout.flush()
    else:
        count = write_vcards(cards, output, settings.newline)
        err_console.print(f"[bold green]✓ Wrote {count} card(s) → {output}[/bold green]")

    if failures:
        raise typer.Exit(code=1)


# ── `init` command ─────────────────────────────────────────────────────────────

@app.command()
def init(
    path: Path = typer.Option(DEFAULT_CONFIG_FILE, "--path", help="Where to write the config"),
) -> None:
    """Write a default vcard.toml unless one already exists."""
    if write_default_config(path):
        console.print(f"[green]Created {path}[/green]")
    else:
        console.print(f"[dim]{path} already exists, left unchanged.[/dim]")


if __name__ == "__main__":
    app()
