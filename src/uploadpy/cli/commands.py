"""Command handlers for CLI operations."""

import sys
from pathlib import Path

import click

from ..core.auth_plugins import AuthRegistry
from ..core.config import load_site_config
from ..core.directory import JsonUserDirectory, UserDirectory
from ..core.exceptions import UploadPyError
from ..core.interfaces import RunTrackerProtocol
from ..models.config import SiteConfig
from ..models.policy import Policy
from ..models.schema import (
    DIRECTIVE_COLUMN_PATTERN,
    IDENTITY_FIELDS,
    MANDATORY_FIELDS,
    OPTION_FIELDS,
    PROFILE_FIELD_PREFIX,
    VALID_FIELDS,
)
from ..operations.batch_processor import UploadProcessor, UploadResults
from ..operations.commit_ops import RowCommitter
from ..operations.preview_ops import display_preview_results, preview_upload
from ..operations.reconcile_ops import RowReconciler
from ..operations.tracker import NullTracker, PlainTracker
from ..utils.display_utils import (
    CYAN,
    GREEN,
    RED,
    RESET,
    YELLOW,
    confirm_action,
    reset_shutdown_flag,
    setup_shutdown_handler,
)
from ..utils.csv_utils import read_user_rows
from ..utils.rich_utils import get_console
from ..utils.validators import is_truthy


class OperationHandler:
    """Handles CLI operations for bulk user uploads.

    This class wires the site settings, the directory file, the policy and
    the engine together for each command, with consistent error handling
    and user feedback.
    """

    def __init__(self, site: SiteConfig | None = None):
        """Initialize the operation handler.

        Args:
            site: Site settings; read from the environment when not given
        """
        self._site = site

    @property
    def site(self) -> SiteConfig:
        if self._site is None:
            self._site = load_site_config()
        return self._site

    def _handle_operation_error(self, error: Exception, operation_name: str) -> None:
        """Handle operation errors with consistent formatting.

        Args:
            error: The exception that occurred
            operation_name: Name of the operation that failed
        """
        click.echo(f"{RED}{operation_name} failed: {error}{RESET}", err=True)
        sys.exit(1)

    def _open_directory(self, directory_file: Path) -> JsonUserDirectory:
        """Load the directory file, or seed a new one with the site accounts."""
        directory = JsonUserDirectory(directory_file)
        if directory_file.exists():
            directory.load()
        else:
            click.echo(
                f"{YELLOW}Directory file {directory_file} not found, "
                f"starting with the built-in accounts{RESET}"
            )
            seeded = UserDirectory.with_site_accounts(
                host_id=self.site.local_host_id,
                admin_username=self.site.admin_usernames[0],
                guest_username=self.site.guest_username,
            )
            directory.load_dict(seeded.to_dict())
        return directory

    def _build_reconciler(
        self, policy: Policy, directory: UserDirectory
    ) -> RowReconciler:
        return RowReconciler(
            policy=policy,
            site=self.site,
            lookup=directory,
            auth_registry=AuthRegistry(enabled=self.site.enabled_auths),
        )

    def _create_tracker(self, output: str) -> RunTrackerProtocol:
        if output == "none":
            return NullTracker()
        return PlainTracker()

    def handle_upload(
        self,
        input_file: Path,
        directory_file: Path,
        policy: Policy,
        delimiter: str = "comma",
        encoding: str = "utf-8",
        output: str = "plain",
        dry_run: bool = False,
        assume_yes: bool = False,
    ) -> UploadResults | None:
        """Handle the upload command.

        Args:
            input_file: Upload file
            directory_file: JSON directory file, created when missing
            policy: Upload policy
            delimiter: Delimiter name of the upload file
            encoding: Encoding of the upload file
            output: Tracker output, plain or none
            dry_run: Only preview what would happen
            assume_yes: Skip the delete confirmation

        Returns:
            UploadResults | None: Results of the run, None when nothing ran
        """
        try:
            rows = list(read_user_rows(input_file, delimiter, encoding))
            directory = self._open_directory(directory_file)

            if dry_run:
                return self._handle_dry_run_preview(rows, directory, policy, output)

            if (
                policy.allow_deletes
                and not assume_yes
                and any(is_truthy(raw.get("deleted")) for _, raw in rows)
                and not confirm_action(
                    "The upload file deletes users. Do you want to continue?"
                )
            ):
                click.echo("Operation cancelled by user.")
                return None

            return self._execute_upload(rows, directory, policy, output)
        except UploadPyError as e:
            self._handle_operation_error(e, "Upload")
            return None

    def _handle_dry_run_preview(
        self,
        rows: list[tuple[int, dict[str, str]]],
        directory: JsonUserDirectory,
        policy: Policy,
        output: str,
    ) -> UploadResults | None:
        """Handle dry-run preview, then offer to run the upload."""
        reconciler = self._build_reconciler(policy, directory)
        result = preview_upload(rows, reconciler, total=len(rows))
        display_preview_results(result)

        if result.success_count == 0:
            click.echo(f"\n{YELLOW}No rows would be applied. Upload cancelled.{RESET}")
            return None

        click.echo(f"\n{GREEN}Preview completed successfully!{RESET}")
        if confirm_action(
            f"Do you want to proceed with the upload of {len(rows)} rows?",
            default=False,
        ):
            click.echo(f"\n{CYAN}Proceeding with the actual upload...{RESET}")
            return self._execute_upload(rows, directory, policy, output)

        click.echo("Operation cancelled by user.")
        return None

    def _execute_upload(
        self,
        rows: list[tuple[int, dict[str, str]]],
        directory: JsonUserDirectory,
        policy: Policy,
        output: str,
    ) -> UploadResults:
        """Run every row and save the directory afterwards."""
        processor = UploadProcessor(
            reconciler=self._build_reconciler(policy, directory),
            committer=RowCommitter(directory, directory),
            tracker=self._create_tracker(output),
            show_progress=output == "none",
        )

        reset_shutdown_flag()
        setup_shutdown_handler()
        try:
            results = processor.run(rows, total=len(rows))
        finally:
            directory.save()

        if results.was_interrupted:
            click.echo(f"{YELLOW}Upload interrupted; remaining rows skipped.{RESET}")
        return results

    def handle_columns(self) -> None:
        """Print the columns an upload file may use."""
        console = get_console()
        console.print("[info]Standard columns:[/info]")
        for column in VALID_FIELDS:
            notes = []
            if column in MANDATORY_FIELDS:
                notes.append("required for new users")
            if column in OPTION_FIELDS:
                notes.append("row option")
            elif column in IDENTITY_FIELDS:
                notes.append("identity")
            suffix = f" ({', '.join(notes)})" if notes else ""
            console.print(f"  {column}{suffix}")

        console.print("\n[info]Custom profile fields:[/info]")
        console.print(f"  {PROFILE_FIELD_PREFIX}<shortname>")

        console.print("\n[info]Numbered directive columns:[/info]")
        console.print(f"  {DIRECTIVE_COLUMN_PATTERN.pattern}")
        console.print("  e.g. cohort1, sysrole1, course1, role1, group1,")
        console.print("       enrolperiod1 (days), enrolstatus1 (1 suspends)")
