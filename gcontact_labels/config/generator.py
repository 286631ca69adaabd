"""
Configuration file generator for contact group labeling.

Provides functionality to generate a default configuration file with
documentation for all available options.
"""

import logging
from pathlib import Path

from gcontact_labels.utils.paths import ensure_private_dir

logger = logging.getLogger(__name__)


def generate_default_config() -> str:
    """
    Generate default YAML configuration with all options documented.

    Returns:
        String containing YAML configuration with comments
    """
    return """# Google Contacts Group Labeling Configuration
# ============================================
#
# This file sets default options for gcontact-labels.
# CLI arguments always override these values.
#
# To use this configuration:
#   1. Save as ~/.gcontact-labels/config.yaml (or custom location)
#   2. Uncomment and modify options as needed
#   3. Run gcontact-labels commands normally

# Account Options
# ---------------

# Authentication profile to use (one token per Google account)
# Default: default
# profile: default


# Logging Options
# ---------------

# Enable verbose output with detailed logging
# Default: false
# verbose: true

# Directory for log files (including the per-session apply audit log)
# Default: ~/.gcontact-labels/logs
# log_dir: /path/to/logs

# Number of log files of each kind to keep
# Set to 0 to keep all log files
# Default: 10
# log_retention_count: 10


# Apply Behavior
# --------------

# Preview planned label changes without applying them
# Default: false
# dry_run: false

# What to do when several selected addresses belong to the same contact.
# Google stores groups per contact, so labeling one address labels them all.
# Options:
#   - prompt: Ask which address(es) to act upon (recommended)
#   - keep_all: Act upon every selected address
#   - first: Act upon the first selected address of each contact
# Default: prompt
# duplicate_handling: prompt

# Include system groups (My Contacts, Starred) in summaries
# Default: false
# show_system_groups: false


# API Options
# -----------

# Number of items per page when listing contacts and groups (max 1000)
# Default: 100
# api_page_size: 100

# Maximum retry attempts for rate-limited or failed API calls
# Default: 5
# api_max_retries: 5

# Initial and maximum backoff delay between retries, in seconds
# Default: 1.0 and 60.0
# api_initial_retry_delay: 1.0
# api_max_retry_delay: 60.0


# Auth Options
# ------------

# Timeout in seconds for network requests during authentication
# Default: 10
# auth_timeout: 10
"""


def save_config_file(
    config_path: Path, overwrite: bool = False
) -> tuple[bool, str | None]:
    """
    Save default configuration file to specified path.

    Creates parent directories if they don't exist and saves
    the configuration with owner-only permissions.

    Args:
        config_path: Path where the config file should be saved
        overwrite: If True, overwrite existing file. If False, fail if file exists.

    Returns:
        Tuple of (success, error_message); error_message is None on success
    """
    try:
        config_path = config_path.expanduser().resolve()

        if config_path.exists() and not overwrite:
            return (
                False,
                f"Configuration file already exists: {config_path}\n"
                "Use --force to overwrite.",
            )

        ensure_private_dir(config_path.parent)
        config_path.write_text(generate_default_config(), encoding="utf-8")
        config_path.chmod(0o600)

        logger.info(f"Created configuration file: {config_path}")
        return (True, None)

    except OSError as e:
        error_msg = f"Failed to create configuration file: {e}"
        logger.error(error_msg)
        return (False, error_msg)
