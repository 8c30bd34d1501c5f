"""Preview operations for dry-run mode - shows what would happen without executing.

Rows are prepared against the directory as it is now and never committed,
so a row that depends on an earlier row of the same file (say, an update
of a user created two lines above) is previewed as if that row had not run.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field

from rich.console import Console
from rich.markup import escape

from ..models.outcome import Action
from ..models.row import UserRow
from ..utils.display_utils import show_progress, shutdown_requested
from ..utils.logging_utils import log_operation
from ..utils.rich_utils import get_console
from .reconcile_ops import RowReconciler


@dataclass
class PreviewResult:
    """Result of a dry-run preview of an upload."""

    total_rows: int = 0
    would_create: list[str] = field(default_factory=list)
    would_update: list[str] = field(default_factory=list)
    would_delete: list[str] = field(default_factory=list)
    rejected: list[dict[str, str]] = field(default_factory=list)
    was_interrupted: bool = False

    @property
    def success_count(self) -> int:
        """Number of rows that would be applied."""
        return len(self.would_create) + len(self.would_update) + len(self.would_delete)

    @property
    def reject_count(self) -> int:
        return len(self.rejected)

    @property
    def success_rate(self) -> float:
        """Success rate as percentage."""
        if self.total_rows == 0:
            return 0.0
        return (self.success_count / self.total_rows) * 100.0


@log_operation("preview")
def preview_upload(
    rows: Iterable[tuple[int, dict[str, str]]],
    reconciler: RowReconciler,
    total: int | None = None,
) -> PreviewResult:
    """Preview what an upload would do without changing the directory.

    Args:
        rows: ``(line_number, raw_row)`` pairs in file order
        reconciler: Reconciler configured with the run policy
        total: Number of rows, for the progress bar

    Returns:
        PreviewResult: Summary of what would happen
    """
    result = PreviewResult()

    for index, (line_number, raw) in enumerate(rows, 1):
        if shutdown_requested():
            result.was_interrupted = True
            break

        if total:
            show_progress(index, total, "Analyzing rows")

        row = UserRow(line_number=line_number, raw=raw)
        prepared = reconciler.prepare(row)
        result.total_rows += 1
        username = row.echoed_fields.get("username", "")

        if not prepared.ok:
            result.rejected.append(
                {
                    "line": str(line_number),
                    "username": username,
                    "error": "; ".join(prepared.errors.values()),
                }
            )
        elif prepared.action is Action.CREATE:
            result.would_create.append(username)
        elif prepared.action is Action.UPDATE:
            result.would_update.append(username)
        else:
            result.would_delete.append(username)

    return result


def _show_names(console: Console, title: str, names: list[str], limit: int) -> None:
    if not names:
        return
    console.print(f"\n[success]{title} ({len(names)}):[/success]")
    for name in names[:limit]:
        console.print(f"  - {escape(name)}")
    if len(names) > limit:
        console.print(f"  ... and {len(names) - limit} more")


def display_preview_results(
    result: PreviewResult, console: Console | None = None, limit: int = 10
) -> None:
    """Display detailed preview results."""
    console = console or get_console()
    console.print("\n[warning]DRY RUN PREVIEW - UPLOAD[/warning]")
    console.print(f"Total rows analyzed: {result.total_rows}")
    console.print(f"Would apply: [info]{result.success_count}[/info]")
    console.print(f"Would reject: [warning]{result.reject_count}[/warning]")
    rate_style = "success" if result.success_rate > 90 else "warning"
    console.print(
        f"Success rate: [{rate_style}]{result.success_rate:.1f}%[/{rate_style}]"
    )

    _show_names(console, "Users that would be created", result.would_create, limit)
    _show_names(console, "Users that would be updated", result.would_update, limit)
    _show_names(console, "Users that would be deleted", result.would_delete, limit)

    if result.rejected:
        console.print(f"\n[error]Rows that would be rejected ({result.reject_count}):")
        for rejection in result.rejected[:limit]:
            console.print(
                f"  - line {rejection['line']} "
                f"({escape(rejection['username'])}): {escape(rejection['error'])}"
            )
        if result.reject_count > limit:
            console.print(f"  ... and {result.reject_count - limit} more")

    if result.was_interrupted:
        console.print("\n[warning]Preview interrupted before the end of the file")
