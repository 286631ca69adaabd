"""
Command-line interface for gcontact_labels.

Provides CLI commands for authentication, listing and creating contact
groups, and applying group memberships to a selection of email addresses.

Usage:
    # Show help
    gcontact-labels --help

    # Authenticate
    gcontact-labels auth

    # Show group membership of some addresses
    gcontact-labels show alice@example.com bob@example.com

    # Add them to a group and remove them from another
    gcontact-labels apply alice@example.com bob@example.com --add Work --remove Old
    gcontact-labels apply alice@example.com --add Work --dry-run
"""

import asyncio
import sys
from pathlib import Path
from typing import Any

import click

from gcontact_labels import __version__
from gcontact_labels.api.google_labeling import GooglePeopleLabelingService
from gcontact_labels.api.people_api import PeopleAPI, PeopleAPIError
from gcontact_labels.auth.google_auth import (
    DEFAULT_PROFILE,
    AuthenticationError,
    GoogleAuth,
)
from gcontact_labels.cli.formatters import (
    format_apply_notification,
    show_membership_summary,
    show_planned_operations,
)
from gcontact_labels.cli.prompts import make_resolver
from gcontact_labels.cli.selection import resolve_group, select_emails
from gcontact_labels.config.generator import save_config_file
from gcontact_labels.config.loader import (
    DUPLICATE_HANDLING_PROMPT,
    VALID_DUPLICATE_HANDLING,
    ConfigError,
    ConfigLoader,
)
from gcontact_labels.membership import (
    DisambiguationCancelled,
    Group,
    LabelingServiceError,
    MembershipSession,
    UnknownGroupError,
)
from gcontact_labels.utils.logging import (
    cleanup_old_logs,
    get_apply_log_path,
    get_logger,
    setup_apply_logger,
    setup_logging,
)
from gcontact_labels.utils.paths import (
    DEFAULT_CONFIG_DIR,
    config_file_path,
    resolve_config_dir,
)

# Default configuration file
DEFAULT_CONFIG_FILE = config_file_path(DEFAULT_CONFIG_DIR)


def get_config_dir(config_dir: str | None) -> Path:
    """Get the configuration directory path."""
    return resolve_config_dir(config_dir)


def get_config_file(config_file: str | None, config_dir: Path) -> Path:
    """Get the configuration file path."""
    if config_file:
        return Path(config_file)
    return config_file_path(config_dir)


def _fail(message: str) -> None:
    """Print an error in red on stderr and exit with status 1."""
    click.echo(click.style(f"Error: {message}", fg="red"), err=True)
    sys.exit(1)


def _get_api(ctx: click.Context) -> PeopleAPI:
    """
    Build a PeopleAPI for the selected profile.

    Exits with status 1 if the profile is not authenticated.
    """
    config: dict[str, Any] = ctx.obj["config"]
    profile: str = ctx.obj["profile"]

    auth = GoogleAuth(
        config_dir=ctx.obj["config_dir"],
        auth_timeout=config.get("auth_timeout", 10),
    )
    creds = auth.get_credentials(profile)
    if not creds:
        click.echo(
            click.style(f"Error: profile '{profile}' is not authenticated.", fg="red"),
            err=True,
        )
        click.echo(f"Run: gcontact-labels --profile {profile} auth", err=True)
        sys.exit(1)

    api_options = {
        "page_size": config.get("api_page_size"),
        "max_retries": config.get("api_max_retries"),
        "initial_retry_delay": config.get("api_initial_retry_delay"),
        "max_retry_delay": config.get("api_max_retry_delay"),
    }
    return PeopleAPI(
        credentials=creds,
        **{k: v for k, v in api_options.items() if v is not None},
    )


def _load_groups(api: PeopleAPI, show_all: bool) -> list[Group]:
    groups = [Group.from_api_response(g) for g in api.list_contact_groups()]
    if not show_all:
        groups = [g for g in groups if g.is_user_group()]
    return groups


@click.group()
@click.version_option(version=__version__, prog_name="gcontact-labels")
@click.option(
    "--verbose", "-v", is_flag=True, help="Enable verbose output with detailed logging."
)
@click.option(
    "--config-dir",
    "-c",
    type=click.Path(exists=False, file_okay=False, dir_okay=True),
    envvar="GCONTACT_LABELS_CONFIG_DIR",
    help="Configuration directory path (default: ~/.gcontact-labels).",
)
@click.option(
    "--config-file",
    "-f",
    type=click.Path(exists=False, file_okay=True, dir_okay=False),
    envvar="GCONTACT_LABELS_CONFIG_FILE",
    help="Configuration file path (default: <config-dir>/config.yaml).",
)
@click.option(
    "--profile",
    "-p",
    default=None,
    help=f"Authentication profile to use (default: {DEFAULT_PROFILE}).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    config_dir: str | None,
    config_file: str | None,
    profile: str | None,
) -> None:
    """
    Google Contacts Group Labeling.

    Adds or removes contact group memberships for a batch of email
    addresses, changing only what needs to change.
    """
    ctx.ensure_object(dict)

    resolved_config_dir = get_config_dir(config_dir)
    resolved_config_file = get_config_file(config_file, resolved_config_dir)

    ctx.obj["config_dir"] = resolved_config_dir
    ctx.obj["config_file"] = resolved_config_file

    config: dict[str, Any] = {}
    try:
        loader = ConfigLoader(
            config_dir=resolved_config_file.parent,
            config_file=resolved_config_file.name,
        )
        config = loader.load_and_validate()
    except ConfigError as e:
        # Keep working with CLI defaults
        click.echo(
            click.style(f"Warning: Configuration error: {e}", fg="yellow"), err=True
        )
        config = {}

    ctx.obj["config"] = config

    # CLI arguments take precedence over the config file
    effective_verbose = verbose or config.get("verbose", False)
    ctx.obj["verbose"] = effective_verbose
    ctx.obj["profile"] = profile or config.get("profile", DEFAULT_PROFILE)

    log_dir = Path(config["log_dir"]) if config.get("log_dir") else None
    ctx.obj["log_dir"] = log_dir

    setup_logging(verbose=effective_verbose, log_dir=log_dir, enable_file_logging=True)

    log_retention = config.get("log_retention_count", 10)
    if log_retention > 0:
        cleanup_old_logs(log_dir=log_dir, keep_count=log_retention)


# =============================================================================
# Auth Command
# =============================================================================


@cli.command("auth")
@click.option(
    "--force",
    is_flag=True,
    help="Force re-authentication even if already authenticated.",
)
@click.option(
    "--logout",
    is_flag=True,
    help="Remove the stored credentials of the profile instead.",
)
@click.pass_context
def auth_command(ctx: click.Context, force: bool, logout: bool) -> None:
    """
    Authenticate a Google account.

    Opens a browser window to complete the OAuth flow and stores
    the credentials for the selected profile.

    Examples:

        gcontact-labels auth

        gcontact-labels --profile work auth --force

        gcontact-labels --profile work auth --logout
    """
    logger = get_logger(__name__)
    profile = ctx.obj["profile"]

    try:
        auth = GoogleAuth(config_dir=ctx.obj["config_dir"])

        if logout:
            if auth.clear_credentials(profile):
                click.echo(f"Removed stored credentials for profile '{profile}'.")
            else:
                click.echo(f"Profile '{profile}' has no stored credentials.")
            return

        if not force and auth.is_authenticated(profile):
            email = auth.get_account_email(profile) or profile
            click.echo(f"Profile '{profile}' is already authenticated ({email}).")
            click.echo("Use --force to re-authenticate.")
            return

        click.echo(f"Authenticating profile '{profile}'...")
        auth.authenticate(profile, force_reauth=force)
        email = auth.get_account_email(profile) or profile
        click.echo(click.style(f"Successfully authenticated {email}", fg="green"))

    except FileNotFoundError as e:
        _fail(str(e))
    except (AuthenticationError, ValueError) as e:
        logger.error(f"Authentication failed: {e}")
        _fail(str(e))


# =============================================================================
# Status Command
# =============================================================================


@cli.command("status")
@click.pass_context
def status_command(ctx: click.Context) -> None:
    """
    Show authentication status.

    Example:

        gcontact-labels status
    """
    try:
        auth = GoogleAuth(config_dir=ctx.obj["config_dir"])
        auth_status = auth.get_auth_status(ctx.obj["profile"])
    except ValueError as e:
        _fail(str(e))
        return

    click.echo("=== Google Contacts Labels Status ===\n")
    click.echo(f"Configuration directory: {auth_status['config_dir']}")
    creds_status = (
        "Found"
        if auth_status["credentials_exist"]
        else click.style("Not found", fg="red")
    )
    click.echo(f"OAuth credentials: {creds_status}")
    click.echo()

    profile = auth_status["profile"]
    if auth_status["authenticated"]:
        email = auth.get_account_email(str(profile)) or profile
        status_text = click.style("Authenticated", fg="green")
        click.echo(f"Profile '{profile}' ({email}): {status_text}")
    elif auth_status["token_exists"]:
        status_text = click.style("Token expired or invalid", fg="yellow")
        click.echo(f"Profile '{profile}': {status_text}")
    else:
        status_text = click.style("Not authenticated", fg="red")
        click.echo(f"Profile '{profile}': {status_text}")

    others = [p for p in auth.list_profiles() if p != profile]
    if others:
        click.echo(f"Other profiles: {', '.join(others)}")

    if not auth_status["credentials_exist"]:
        click.echo()
        click.echo(
            click.style("Setup required: OAuth credentials not found.", fg="yellow")
        )
        click.echo("Please download credentials from Google Cloud Console")
        click.echo(f"and save to: {auth_status['credentials_path']}")


# =============================================================================
# Init-Config Command
# =============================================================================


@cli.command("init-config")
@click.option(
    "--force",
    is_flag=True,
    help="Overwrite existing configuration file if it exists.",
)
@click.pass_context
def init_config_command(ctx: click.Context, force: bool) -> None:
    """
    Generate a default configuration file.

    Creates a configuration file with all available options documented
    and commented out.
    """
    logger = get_logger(__name__)
    config_file = ctx.obj["config_file"]

    click.echo(f"Creating configuration file: {config_file}")

    success, error = save_config_file(config_file, overwrite=force)

    if success:
        click.echo(click.style("Configuration file created successfully!", fg="green"))
        click.echo(f"\nLocation: {config_file}")
        logger.info(f"Created configuration file: {config_file}")
    else:
        logger.error(f"Failed to create configuration file: {error}")
        _fail(str(error))


# =============================================================================
# List-Groups Command
# =============================================================================


@cli.command("list-groups")
@click.option(
    "--all",
    "-A",
    "show_all",
    is_flag=True,
    help="Show all groups including system groups.",
)
@click.pass_context
def list_groups_command(ctx: click.Context, show_all: bool) -> None:
    """
    List contact groups.

    System groups (myContacts, starred) are hidden by default.
    """
    logger = get_logger(__name__)
    api = _get_api(ctx)

    try:
        groups = _load_groups(api, show_all)
    except PeopleAPIError as e:
        logger.error(f"Failed to list groups: {e}")
        _fail(str(e))
        return

    if not groups:
        click.echo("No contact groups found.")
        return

    click.echo(f"{'Name':<40} {'Type':<10} {'Members':<10}")
    click.echo("-" * 60)
    for group in sorted(groups, key=lambda g: g.name.lower()):
        group_type = "User" if group.is_user_group() else "System"
        click.echo(f"{group.name:<40} {group_type:<10} {group.member_count:<10}")

    click.echo()
    click.echo(f"Total: {len(groups)} group(s)")

    if ctx.obj["verbose"]:
        click.echo()
        click.echo("Resource names:")
        for group in sorted(groups, key=lambda g: g.name.lower()):
            click.echo(f"  {group.name}: {group.id}")


# =============================================================================
# Create-Group Command
# =============================================================================


@cli.command("create-group")
@click.argument("name")
@click.pass_context
def create_group_command(ctx: click.Context, name: str) -> None:
    """
    Create a new contact group named NAME.

    Example:

        gcontact-labels create-group "Work"
    """
    logger = get_logger(__name__)
    api = _get_api(ctx)

    try:
        result = api.create_contact_group(name)
    except PeopleAPIError as e:
        if "already exists" in str(e).lower():
            click.echo(click.style(f"Group '{name}' already exists.", fg="yellow"))
            return
        logger.error(f"Failed to create group: {e}")
        _fail(str(e))
        return

    resource_name = result.get("resourceName", "unknown")
    click.echo(click.style(f"Created group '{name}': {resource_name}", fg="green"))


# =============================================================================
# Show Command
# =============================================================================


@cli.command("show")
@click.argument("emails", nargs=-1, required=True)
@click.option(
    "--all",
    "-A",
    "show_all",
    is_flag=True,
    help="Include system groups.",
)
@click.pass_context
def show_command(ctx: click.Context, emails: tuple[str, ...], show_all: bool) -> None:
    """
    Show group membership of the given EMAILS.

    Each group is shown as fully applied [x], partially applied [-]
    or not applied [ ] over the selected addresses.
    """
    logger = get_logger(__name__)
    api = _get_api(ctx)
    show_all = show_all or ctx.obj["config"].get("show_system_groups", False)

    try:
        groups = _load_groups(api, show_all)
        contacts = api.list_contacts()
    except PeopleAPIError as e:
        logger.error(f"Failed to load contacts: {e}")
        _fail(str(e))
        return

    selection, missing = select_emails(contacts, emails)
    for address in missing:
        click.echo(click.style(f"Warning: no contact has {address}", fg="yellow"))
    if not selection:
        _fail("None of the given addresses belong to a contact.")

    session = MembershipSession(
        groups,
        selection,
        contacts,
        labeling_service=GooglePeopleLabelingService(api),
        resolver=make_resolver(DUPLICATE_HANDLING_PROMPT),
    )
    session.open()
    show_membership_summary(groups, session.selection_map, selection)


# =============================================================================
# Apply Command
# =============================================================================


@cli.command("apply")
@click.argument("emails", nargs=-1, required=True)
@click.option(
    "--add",
    "add_groups",
    multiple=True,
    help="Group to add the addresses to (name or resource name). Repeatable.",
)
@click.option(
    "--remove",
    "remove_groups",
    multiple=True,
    help="Group to remove the addresses from (name or resource name). Repeatable.",
)
@click.option(
    "--dry-run",
    is_flag=True,
    help="Preview changes without applying them.",
)
@click.option(
    "--duplicates",
    type=click.Choice(VALID_DUPLICATE_HANDLING, case_sensitive=False),
    default=None,
    help="How to handle contacts with several selected addresses.",
)
@click.option(
    "--all",
    "-A",
    "show_all",
    is_flag=True,
    help="Allow system groups.",
)
@click.pass_context
def apply_command(
    ctx: click.Context,
    emails: tuple[str, ...],
    add_groups: tuple[str, ...],
    remove_groups: tuple[str, ...],
    dry_run: bool,
    duplicates: str | None,
    show_all: bool,
) -> None:
    """
    Add or remove group memberships for the given EMAILS.

    Groups not named with --add or --remove keep their current
    membership. Only addresses whose membership differs are changed.

    Examples:

        gcontact-labels apply alice@example.com bob@example.com --add Work

        gcontact-labels apply alice@example.com --remove Old --dry-run
    """
    logger = get_logger(__name__)
    config: dict[str, Any] = ctx.obj["config"]

    if not add_groups and not remove_groups:
        raise click.UsageError("Specify at least one --add or --remove group.")

    dry_run = dry_run or config.get("dry_run", False)
    policy = duplicates or config.get("duplicate_handling", DUPLICATE_HANDLING_PROMPT)
    show_all = show_all or config.get("show_system_groups", False)

    api = _get_api(ctx)

    try:
        groups = _load_groups(api, show_all)
        contacts = api.list_contacts()
    except PeopleAPIError as e:
        logger.error(f"Failed to load contacts: {e}")
        _fail(str(e))
        return

    try:
        add_ids = [resolve_group(groups, g).id for g in add_groups]
        remove_ids = [resolve_group(groups, g).id for g in remove_groups]
    except UnknownGroupError as e:
        _fail(str(e))
        return

    conflicting = set(add_ids) & set(remove_ids)
    if conflicting:
        raise click.UsageError(
            f"Cannot both add and remove: {', '.join(sorted(conflicting))}"
        )

    selection, missing = select_emails(contacts, emails)
    for address in missing:
        click.echo(click.style(f"Warning: no contact has {address}", fg="yellow"))
    if not selection:
        _fail("None of the given addresses belong to a contact.")

    refreshed: dict[str, Any] = {}

    async def refresh() -> None:
        refreshed["contacts"] = await asyncio.to_thread(api.list_contacts)

    def notify(count: int) -> None:
        click.echo(click.style(format_apply_notification(count), fg="green"))

    session = MembershipSession(
        groups,
        selection,
        contacts,
        labeling_service=GooglePeopleLabelingService(api),
        resolver=make_resolver(policy),
        on_refresh=refresh,
        on_notify=notify,
    )
    session.open()
    show_membership_summary(groups, session.selection_map, selection)

    for group_id in add_ids:
        session.toggle(group_id, True)
    for group_id in remove_ids:
        session.toggle(group_id, False)

    groups_by_id = {g.id: g for g in groups}
    emails_by_id = {e.id: e for e in selection}

    if dry_run:
        click.echo(click.style("\n[DRY RUN] No changes will be made.", fg="cyan"))
        try:
            _, operations = asyncio.run(session.preview())
        except DisambiguationCancelled:
            click.echo("Cancelled.")
            sys.exit(1)
        show_planned_operations(operations, groups_by_id, emails_by_id)
        return

    setup_apply_logger(log_file=get_apply_log_path(ctx.obj["log_dir"]))

    try:
        operations = asyncio.run(session.apply())
    except DisambiguationCancelled:
        logger.info("Apply cancelled during address selection")
        click.echo("Cancelled.")
        sys.exit(1)
    except LabelingServiceError as e:
        logger.error(f"Apply failed: {e}")
        _fail(f"{e}. Changes already made were kept; run the command again to retry.")
        return

    show_planned_operations(operations, groups_by_id, emails_by_id)

    if "contacts" in refreshed:
        new_selection, _ = select_emails(refreshed["contacts"], emails)
        session.update_inputs(selection=new_selection, contacts=refreshed["contacts"])
        session.open()
        click.echo()
        show_membership_summary(groups, session.selection_map, new_selection)
