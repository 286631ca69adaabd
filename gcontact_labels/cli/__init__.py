"""CLI package for gcontact_labels."""

from gcontact_labels.cli.formatters import (
    format_apply_notification,
    show_membership_summary,
    show_planned_operations,
)
from gcontact_labels.cli.main import (
    DEFAULT_CONFIG_FILE,
    cli,
    get_config_dir,
    get_config_file,
)
from gcontact_labels.utils import DEFAULT_CONFIG_DIR

__all__ = [
    "DEFAULT_CONFIG_DIR",
    "DEFAULT_CONFIG_FILE",
    "cli",
    "format_apply_notification",
    "get_config_dir",
    "get_config_file",
    "show_membership_summary",
    "show_planned_operations",
]
