"""CLI commands for the attendance tracker.

Attendance commands:
- add, list, present, absent, edit, delete, reset, summary

Notes commands:
- notes-add, notes-list, notes-search, notes-delete, notes-get

Server:
- serve

State lives under $TRACKER_DATA_DIR/state (default: data/state).
"""

import binascii
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from tracker.config.app_config import load_app_config, resolve_data_dir
from tracker.core.attendance import SubjectStore, SubjectUpdate
from tracker.core.notes import (
    FileFilter,
    UnsupportedFileTypeError,
    decode_file_content,
    format_file_size,
    load_uploaded_file,
    matches_filter,
    open_notes_library,
)
from tracker.core.persistence import open_subject_store
from tracker.core.projector import AttendanceStatus, project, project_all, summarize
from tracker.utils.validators import (
    AmbiguousSubjectIdError,
    SubjectNotFoundError,
    resolve_subject_id,
)

app = typer.Typer(
    name="track",
    help="Personal attendance tracker with safe-absence projections.",
    no_args_is_help=True,
)

console = Console()

STATUS_STYLES = {
    AttendanceStatus.ON_TRACK: ("green", "On Track"),
    AttendanceStatus.WARNING: ("yellow", "Warning"),
    AttendanceStatus.CRITICAL: ("red", "Critical"),
}


def _open_store() -> SubjectStore:
    return open_subject_store(resolve_data_dir())


def _resolve_subject_id_or_exit(store: SubjectStore, prefix: str) -> str:
    """Resolve subject id prefix to full ID, or exit with helpful error."""
    candidates = [s.id for s in store.subjects]
    try:
        return resolve_subject_id(prefix, candidates)
    except SubjectNotFoundError as e:
        console.print(f"[red]✗ {e}[/red]")
        if candidates:
            console.print("\nAvailable subjects:")
            for s in store.subjects:
                console.print(f"  - {s.id}: {s.name}")
        raise typer.Exit(code=1)
    except AmbiguousSubjectIdError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)


def _print_subject_line(store: SubjectStore, subject_id: str) -> None:
    subject = store.get_subject(subject_id)
    if subject is None:
        return
    projection = project(subject)
    color, label = STATUS_STYLES[projection.status]
    console.print(
        f"  [dim]{subject.name}:[/dim] {subject.present}/{subject.total} "
        f"({projection.percentage:.1f}%) [{color}]{label}[/{color}]"
    )
    if projection.is_on_track and projection.safe_absences > 0:
        console.print(f"  [green]Safe to miss: {projection.safe_absences} classes[/green]")
    elif not projection.is_on_track and projection.required_attendance > 0:
        console.print(
            f"  [red]Need to attend: {projection.required_attendance} more classes[/red]"
        )


# =============================================================================
# ATTENDANCE COMMANDS
# =============================================================================


@app.command()
def add(
    name: str = typer.Argument(..., help="Subject name (e.g., 'Mathematics')"),
    target: int | None = typer.Option(
        None, "--target", "-t", min=1, max=100,
        help="Target attendance percentage (default from config, usually 75)",
    ),
) -> None:
    """Add a subject to track."""
    if target is None:
        target = load_app_config().attendance.default_target

    store = _open_store()
    subject = store.add_subject(name, target)
    if subject is None:
        console.print("[red]✗ Subject name cannot be empty[/red]")
        raise typer.Exit(code=1)

    console.print(f"[green]✓ Added {subject.name}[/green]")
    console.print(f"  [dim]id:[/dim]     {subject.id}")
    console.print(f"  [dim]target:[/dim] {subject.target}%")


@app.command(name="list")
def list_subjects() -> None:
    """Show every subject with its projection."""
    store = _open_store()

    if not store.subjects:
        console.print("[yellow]No subjects added yet[/yellow]")
        console.print("  Add one with: track add 'Mathematics' --target 75")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("ID", style="dim")
    table.add_column("Subject")
    table.add_column("Target", justify="right")
    table.add_column("Present", justify="right")
    table.add_column("Total", justify="right")
    table.add_column("%", justify="right")
    table.add_column("Status")
    table.add_column("Outlook")

    for projection in project_all(store.subjects):
        subject = projection.subject
        color, label = STATUS_STYLES[projection.status]
        if projection.is_on_track:
            outlook = f"can miss {projection.safe_absences}"
        else:
            outlook = f"attend {projection.required_attendance} more"
        table.add_row(
            subject.id,
            subject.name,
            f"{subject.target}%",
            str(subject.present),
            str(subject.total),
            f"{projection.percentage:.1f}",
            f"[{color}]{label}[/{color}]",
            outlook,
        )

    console.print(table)


@app.command()
def present(
    subject_id: str = typer.Argument(..., help="Subject ID or unique prefix"),
) -> None:
    """Mark a class as attended."""
    store = _open_store()
    resolved_id = _resolve_subject_id_or_exit(store, subject_id)

    store.mark_present(resolved_id)
    console.print("[green]✓ Marked present[/green]")
    _print_subject_line(store, resolved_id)


@app.command()
def absent(
    subject_id: str = typer.Argument(..., help="Subject ID or unique prefix"),
) -> None:
    """Mark a class as missed."""
    store = _open_store()
    resolved_id = _resolve_subject_id_or_exit(store, subject_id)

    store.mark_absent(resolved_id)
    console.print("[yellow]✓ Marked absent[/yellow]")
    _print_subject_line(store, resolved_id)


@app.command()
def edit(
    subject_id: str = typer.Argument(..., help="Subject ID or unique prefix"),
    name: str | None = typer.Option(None, "--name", "-n", help="New subject name"),
    target: int | None = typer.Option(
        None, "--target", "-t", min=1, max=100, help="New target %"
    ),
    present_count: int | None = typer.Option(
        None, "--present", min=0, help="Overwrite the attended count"
    ),
    total_count: int | None = typer.Option(
        None, "--total", min=0, help="Overwrite the held count"
    ),
) -> None:
    """Edit a subject's name, target or raw counters.

    Raw counters are the only way to correct a mis-clicked absence.
    """
    update = SubjectUpdate(
        name=name,
        target=target,
        present=present_count,
        total=total_count,
    )
    if update.is_empty():
        console.print("[yellow]⚠ Nothing to change[/yellow]")
        console.print("  Use --name, --target, --present or --total")
        raise typer.Exit(code=1)

    store = _open_store()
    resolved_id = _resolve_subject_id_or_exit(store, subject_id)

    if store.update_subject(resolved_id, update) is None:
        console.print("[red]✗ Edit rejected[/red]")
        console.print("  Name must not be empty and present cannot exceed total")
        raise typer.Exit(code=1)

    console.print("[green]✓ Subject updated[/green]")
    _print_subject_line(store, resolved_id)


@app.command()
def delete(
    subject_id: str = typer.Argument(..., help="Subject ID or unique prefix"),
) -> None:
    """Delete a subject and its counters."""
    store = _open_store()
    resolved_id = _resolve_subject_id_or_exit(store, subject_id)
    subject = store.get_subject(resolved_id)

    store.delete_subject(resolved_id)
    console.print(f"[green]✓ Deleted {subject.name if subject else resolved_id}[/green]")


@app.command()
def reset(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation prompt"),
) -> None:
    """Delete every subject and erase saved attendance."""
    store = _open_store()

    if not yes:
        confirm = typer.confirm(f"Delete all {len(store.subjects)} subjects?")
        if not confirm:
            console.print("[yellow]Cancelled[/yellow]")
            raise typer.Exit(code=0)

    store.reset_all_data()
    console.print("[green]✓ All attendance data cleared[/green]")


@app.command()
def summary() -> None:
    """Show dashboard totals."""
    store = _open_store()
    totals = summarize(store.subjects)

    console.print(f"[bold]Total subjects:[/bold]     {totals.total_subjects}")
    console.print(f"[bold]Total classes:[/bold]      {totals.total_classes}")
    console.print(f"[bold]Average attendance:[/bold] {totals.average_attendance:.1f}%")


# =============================================================================
# NOTES COMMANDS
# =============================================================================


@app.command(name="notes-add")
def notes_add(
    file_path: Path = typer.Argument(
        ..., exists=True, dir_okay=False, readable=True, help="File to upload"
    ),
    year: str = typer.Option(..., "--year", "-y", help="Academic year ID (e.g., 'first-year')"),
    semester: str = typer.Option(
        ..., "--semester", "-s", help="Semester ID (e.g., 'semester-1')"
    ),
) -> None:
    """Upload a file into a semester."""
    library = open_notes_library(resolve_data_dir())

    try:
        uploaded = load_uploaded_file(file_path)
    except UnsupportedFileTypeError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)

    if not library.add_file(year, semester, uploaded):
        console.print(f"[red]✗ Semester not found: {year}/{semester}[/red]")
        raise typer.Exit(code=1)

    console.print(f"[green]✓ Uploaded {uploaded.name}[/green]")
    console.print(f"  [dim]id:[/dim]   {uploaded.id}")
    console.print(f"  [dim]size:[/dim] {format_file_size(uploaded.size)}")


@app.command(name="notes-list")
def notes_list(
    file_filter: FileFilter = typer.Option(
        FileFilter.ALL, "--filter", "-f", help="Only show one kind of file"
    ),
) -> None:
    """Show the notes library tree."""
    library = open_notes_library(resolve_data_dir())

    console.print(f"[bold]Notes library[/bold] ({library.total_files()} files)")
    for year in library.academic_years:
        console.print(f"\n[bold]{year.name}[/bold] [dim]({year.id})[/dim]")
        for semester in year.semesters:
            files = [f for f in semester.files if matches_filter(f, file_filter)]
            console.print(f"  {semester.name} [dim]({semester.id})[/dim]: {len(files)}")
            for f in files:
                console.print(
                    f"    • {f.name} [dim]{format_file_size(f.size)} · {f.id}[/dim]"
                )


@app.command(name="notes-search")
def notes_search(
    query: str = typer.Argument(..., help="Text to look for in file names"),
) -> None:
    """Find files by name."""
    library = open_notes_library(resolve_data_dir())
    matches = library.search_files(query)

    if not matches:
        console.print(f"[yellow]No files match '{query}'[/yellow]")
        return

    for match in matches:
        console.print(
            f"  • {match.file.name} [dim]{match.year.name} / {match.semester.name} · "
            f"{match.file.id}[/dim]"
        )


@app.command(name="notes-delete")
def notes_delete(
    file_id: str = typer.Argument(..., help="File ID"),
    year: str = typer.Option(..., "--year", "-y", help="Academic year ID"),
    semester: str = typer.Option(..., "--semester", "-s", help="Semester ID"),
) -> None:
    """Remove a file from a semester."""
    library = open_notes_library(resolve_data_dir())

    if not library.delete_file(year, semester, file_id):
        console.print(f"[red]✗ File not found: {file_id}[/red]")
        raise typer.Exit(code=1)

    console.print(f"[green]✓ Deleted file {file_id}[/green]")


@app.command(name="notes-get")
def notes_get(
    file_id: str = typer.Argument(..., help="File ID"),
    year: str = typer.Option(..., "--year", "-y", help="Academic year ID"),
    semester: str = typer.Option(..., "--semester", "-s", help="Semester ID"),
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Destination file or directory (default: ./<file name>)"
    ),
) -> None:
    """Write a stored file back to disk."""
    library = open_notes_library(resolve_data_dir())

    stored = library.get_file(year, semester, file_id)
    if stored is None:
        console.print(f"[red]✗ File not found: {file_id}[/red]")
        raise typer.Exit(code=1)

    if output is None:
        output = Path(stored.name)
    elif output.is_dir():
        output = output / stored.name

    try:
        data = decode_file_content(stored)
    except (binascii.Error, ValueError) as e:
        console.print(f"[red]✗ Stored content is corrupted: {e}[/red]")
        raise typer.Exit(code=1)

    output.write_bytes(data)
    console.print(f"[green]✓ Saved {stored.name}[/green]")
    console.print(f"  [dim]path:[/dim] {output}")
    console.print(f"  [dim]size:[/dim] {format_file_size(len(data))}")


# =============================================================================
# WEB SERVER
# =============================================================================


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address"),
    port: int = typer.Option(8000, "--port", "-p", help="Bind port"),
    reload: bool = typer.Option(False, "--reload", help="Auto-reload on code changes"),
) -> None:
    """Run the Web API with uvicorn."""
    import uvicorn

    console.print(f"[blue]Serving on http://{host}:{port}[/blue] [dim](docs at /docs)[/dim]")
    uvicorn.run("tracker.web.api:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
