"""Upload run controller.

This module drives an upload run with:
- Strictly sequential prepare and commit per row
- Shutdown signal handling between rows
- Tracker reporting of every row and the summary
- Standardized result tracking
"""

from collections.abc import Iterable
from dataclasses import dataclass, field

from ..core.exceptions import ContractViolationError
from ..core.interfaces import RunTrackerProtocol
from ..models.outcome import Action, Committed, Rejected, RowOutcome
from ..models.row import UserRow
from ..utils.console_log import print_info, print_warning
from ..utils.display_utils import show_progress, shutdown_requested
from ..utils.logging_utils import log_operation
from .commit_ops import RowCommitter
from .reconcile_ops import RowReconciler


@dataclass
class UploadResults:
    """Aggregated results of an upload run.

    Attributes:
        total: Number of rows processed
        created: Number of users created
        updated: Number of users updated (renames included)
        deleted: Number of users deleted
        errors: Number of rows rejected or failed at commit
        was_interrupted: Whether the run stopped on a shutdown signal
        outcomes: Outcome per processed line number
    """

    total: int = 0
    created: int = 0
    updated: int = 0
    deleted: int = 0
    errors: int = 0
    was_interrupted: bool = False
    outcomes: dict[int, RowOutcome] = field(default_factory=dict)

    def record(self, line_number: int, outcome: RowOutcome) -> None:
        """Count the outcome of one row."""
        self.total += 1
        self.outcomes[line_number] = outcome
        if not isinstance(outcome, Committed):
            self.errors += 1
        elif outcome.action is Action.CREATE:
            self.created += 1
        elif outcome.action is Action.UPDATE:
            self.updated += 1
        else:
            self.deleted += 1


class UploadProcessor:
    """Runs every row of an upload through prepare and commit, in order.

    Each row is committed before the next one is prepared, so lookups for a
    row see every earlier row's changes.
    """

    def __init__(
        self,
        reconciler: RowReconciler,
        committer: RowCommitter,
        tracker: RunTrackerProtocol,
        show_progress: bool = False,
    ):
        """Initialize the processor.

        Args:
            reconciler: Prepares rows
            committer: Commits prepared rows
            tracker: Receives the row report and summary
            show_progress: Whether to draw a progress bar on stderr
        """
        self.reconciler = reconciler
        self.committer = committer
        self.tracker = tracker
        self.show_progress = show_progress

    def process_row(self, row: UserRow) -> RowOutcome:
        """Prepare a row and commit it when preparation succeeded.

        Raises:
            ContractViolationError: If the row was already processed
        """
        prepared = self.reconciler.prepare(row)
        if prepared.ok:
            return self.committer.proceed(row)
        if row.outcome is None:
            raise ContractViolationError(
                f"Rejected row {row.line_number} has no outcome",
                state=row.state.value,
                operation="process_row",
            )
        return row.outcome

    @log_operation("upload")
    def run(
        self, rows: Iterable[tuple[int, dict[str, str]]], total: int | None = None
    ) -> UploadResults:
        """Process rows until the input ends or a shutdown is requested.

        The summary is reported even when reading the input or processing a
        row raises; the exception is propagated afterwards.

        Args:
            rows: ``(line_number, raw_row)`` pairs in file order
            total: Number of rows, for the progress bar

        Returns:
            UploadResults: Counts and outcomes of the processed rows
        """
        results = UploadResults()
        self.tracker.start()

        try:
            for index, (line_number, raw) in enumerate(rows, 1):
                if shutdown_requested():
                    results.was_interrupted = True
                    print_warning(
                        f"Upload interrupted before line {line_number}",
                        operation="upload",
                    )
                    break

                if self.show_progress and total:
                    show_progress(index, total, "Uploading users")

                row = UserRow(line_number=line_number, raw=raw)
                outcome = self.process_row(row)
                results.record(line_number, outcome)

                messages = [str(status) for status in outcome.statuses]
                if isinstance(outcome, Rejected):
                    messages.extend(outcome.errors.values())
                self.tracker.output(
                    line_number,
                    isinstance(outcome, Committed),
                    messages,
                    row.echoed_fields,
                )
        finally:
            self.tracker.results(
                results.total,
                results.created,
                results.updated,
                results.deleted,
                results.errors,
            )
            print_info(
                f"Upload finished: {results.total} rows, {results.errors} errors",
                operation="upload",
            )

        return results
