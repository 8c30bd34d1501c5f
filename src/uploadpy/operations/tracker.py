"""Run trackers: the per-row report and the summary of an upload run."""

from collections.abc import Sequence

from rich.console import Console
from rich.markup import escape

from ..models.outcome import Status
from ..utils.rich_utils import get_console

REPORT_COLUMNS = ("line", "result", "username", "firstname", "lastname", "id")


class PlainTracker:
    """Tab separated report printed to a rich console."""

    def __init__(self, console: Console | None = None):
        self.console = console or get_console()

    def start(self) -> None:
        self.console.print("\t".join(REPORT_COLUMNS), style="bold")

    def output(
        self,
        line: int,
        committed: bool,
        statuses: Sequence[Status | str],
        data: dict[str, str],
    ) -> None:
        result = "[ok]OK[/ok]" if committed else "[nok]NOK[/nok]"
        cells = [str(line), result]
        cells.extend(escape(str(data.get(column, ""))) for column in REPORT_COLUMNS[2:])
        self.console.print("\t".join(cells))
        for status in statuses:
            self.console.print(f"\t{escape(str(status))}", style="muted")

    def results(
        self, total: int, created: int, updated: int, deleted: int, errors: int
    ) -> None:
        self.console.print()
        self.console.print(f"Created: [success]{created}[/success]")
        self.console.print(f"Updated: [info]{updated}[/info]")
        self.console.print(f"Deleted: [warning]{deleted}[/warning]")
        self.console.print(f"Errors: [error]{errors}[/error]")
        self.console.print(f"Total: {total}")


class NullTracker:
    """Tracker that reports nothing."""

    def start(self) -> None:
        pass

    def output(
        self,
        line: int,
        committed: bool,
        statuses: Sequence[Status | str],
        data: dict[str, str],
    ) -> None:
        pass

    def results(
        self, total: int, created: int, updated: int, deleted: int, errors: int
    ) -> None:
        pass
