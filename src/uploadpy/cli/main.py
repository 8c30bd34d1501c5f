"""Click-based CLI entry point for the uploadpy bulk user upload tool."""

import sys
from pathlib import Path

import click

from ..core.exceptions import ValidationError
from ..models.policy import Policy
from ..utils.csv_utils import DELIMITERS
from ..utils.display_utils import RED, RESET, YELLOW
from ..utils.logging_utils import setup_logging
from ..utils.rich_utils import install_rich_tracebacks
from .commands import OperationHandler

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def _parse_defaults(
    ctx: click.Context, param: click.Parameter, values: tuple[str, ...]
) -> dict[str, str]:
    """Parse repeated ``--default FIELD=VALUE`` options."""
    defaults: dict[str, str] = {}
    for item in values:
        name, sep, value = item.partition("=")
        if not sep or not name.strip():
            raise click.BadParameter(f"expected FIELD=VALUE, got {item!r}")
        defaults[name.strip().lower()] = value.strip()
    return defaults


@click.group(invoke_without_command=True)
@click.pass_context
def cli(ctx: click.Context) -> None:
    """uploadpy - bulk user upload into a user directory."""
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, file_okay=True, dir_okay=False, readable=True),
)
@click.option(
    "--directory",
    "directory_file",
    type=click.Path(dir_okay=False),
    default="users.json",
    show_default=True,
    help="JSON directory file, created when missing",
)
@click.option(
    "--mode",
    "-m",
    type=click.Choice(["createnew", "createall", "createorupdate", "update"]),
    required=True,
    help="Import mode",
)
@click.option(
    "--update-mode",
    "-u",
    type=click.Choice(["nothing", "dataonly", "dataordefaults", "missingonly"]),
    default="nothing",
    show_default=True,
    help="How existing users are updated",
)
@click.option(
    "--password-mode",
    "-p",
    type=click.Choice(["generate", "field"]),
    default="generate",
    show_default=True,
    help="Generate missing passwords or require the password column",
)
@click.option(
    "--force-password-change",
    type=click.Choice(["none", "weak", "all"]),
    default="none",
    show_default=True,
    help="Force users to change their password",
)
@click.option(
    "--delimiter",
    "-d",
    type=click.Choice(list(DELIMITERS)),
    default="comma",
    show_default=True,
)
@click.option("--encoding", "-e", default="utf-8", show_default=True)
@click.option("--allow-deletes", is_flag=True, help="Allow users to be deleted")
@click.option("--allow-renames", is_flag=True, help="Allow users to be renamed")
@click.option(
    "--allow-suspends/--no-allow-suspends",
    default=True,
    show_default=True,
    help="Allow accounts to be suspended or activated",
)
@click.option(
    "--no-email-duplicates/--allow-email-duplicates",
    default=True,
    show_default=True,
    help="Reject email addresses already used by another user",
)
@click.option(
    "--standardise/--no-standardise",
    default=True,
    show_default=True,
    help="Standardise usernames",
)
@click.option(
    "--update-password", is_flag=True, help="Update passwords of existing users"
)
@click.option(
    "--default",
    "defaults",
    multiple=True,
    callback=_parse_defaults,
    metavar="FIELD=VALUE",
    help="Default value of a profile field (repeatable)",
)
@click.option(
    "--output",
    type=click.Choice(["plain", "none"]),
    default="plain",
    show_default=True,
    help="Row report format",
)
@click.option(
    "--dry-run", is_flag=True, help="Preview what would happen without executing"
)
@click.option("--yes", "-y", "assume_yes", is_flag=True, help="Do not ask to confirm")
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Override the log level",
)
def upload(
    input_file: str,
    directory_file: str,
    mode: str,
    update_mode: str,
    password_mode: str,
    force_password_change: str,
    delimiter: str,
    encoding: str,
    allow_deletes: bool,
    allow_renames: bool,
    allow_suspends: bool,
    no_email_duplicates: bool,
    standardise: bool,
    update_password: bool,
    defaults: dict[str, str],
    output: str,
    dry_run: bool,
    assume_yes: bool,
    log_level: str | None,
) -> None:
    """Upload users from a delimited file into the directory."""
    if log_level:
        setup_logging(level=log_level)

    try:
        policy = Policy.from_options(
            mode,
            update_mode=update_mode,
            password_mode=password_mode,
            force_password_change=force_password_change,
            allow_renames=allow_renames,
            allow_deletes=allow_deletes,
            allow_suspends=allow_suspends,
            standardise_usernames=standardise,
            update_password=update_password,
            no_email_duplicates=no_email_duplicates,
            defaults=defaults,
        )
    except ValidationError as e:
        raise click.BadParameter(str(e)) from e

    if mode == "update" and update_mode == "nothing":
        click.echo(
            f"{YELLOW}Update mode 'nothing' with mode 'update' leaves existing "
            f"users unchanged; only deletes are applied.{RESET}",
            err=True,
        )

    handler = OperationHandler()
    handler.handle_upload(
        Path(input_file),
        Path(directory_file),
        policy,
        delimiter=delimiter,
        encoding=encoding,
        output=output,
        dry_run=dry_run,
        assume_yes=assume_yes,
    )


@cli.command()
def columns() -> None:
    """List the columns an upload file may use."""
    handler = OperationHandler()
    handler.handle_columns()


def main() -> None:
    """Main entry point for the CLI application."""
    try:
        # Enable pretty tracebacks
        install_rich_tracebacks()
        cli()
    except KeyboardInterrupt:
        click.echo(f"\n{YELLOW}Operation interrupted by user.{RESET}")
        sys.exit(0)
    except Exception as e:
        click.echo(f"{RED}Unexpected error: {e}{RESET}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
