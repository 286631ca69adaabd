"""
Locations of the files gcontact-labels keeps on disk.

Everything lives in one configuration directory:

    <config dir>/
        config.yaml             settings written by init-config
        credentials.json        OAuth client downloaded from Google Cloud
        token_<profile>.json    stored OAuth token, one per profile
        logs/                   daily logs and apply audit logs

The directory is taken from --config-dir, then $GCONTACT_LABELS_CONFIG_DIR,
then ~/.gcontact-labels.
"""

from __future__ import annotations

import os
from pathlib import Path

DEFAULT_CONFIG_DIR = Path.home() / ".gcontact-labels"
CONFIG_DIR_ENV_VAR = "GCONTACT_LABELS_CONFIG_DIR"

CONFIG_FILE_NAME = "config.yaml"
CREDENTIALS_FILE_NAME = "credentials.json"
LOGS_DIR_NAME = "logs"

TOKEN_PREFIX = "token_"
TOKEN_SUFFIX = ".json"


def resolve_config_dir(config_dir: Path | str | None = None) -> Path:
    """
    Resolve the configuration directory.

    An empty environment variable counts as unset. The result is absolute
    with ~ expanded.
    """
    candidate = config_dir
    if candidate is None:
        candidate = os.environ.get(CONFIG_DIR_ENV_VAR) or DEFAULT_CONFIG_DIR
    return Path(candidate).expanduser().resolve()


def config_file_path(config_dir: Path) -> Path:
    """Default settings file inside a resolved config directory."""
    return config_dir / CONFIG_FILE_NAME


def credentials_file_path(config_dir: Path) -> Path:
    """OAuth client secrets file inside a resolved config directory."""
    return config_dir / CREDENTIALS_FILE_NAME


def logs_dir(config_dir: Path | str | None = None) -> Path:
    """Directory receiving log files, resolving config_dir first."""
    return resolve_config_dir(config_dir) / LOGS_DIR_NAME


def token_file_path(config_dir: Path, profile: str) -> Path:
    """Token file of a profile. The profile name is not validated here."""
    return config_dir / f"{TOKEN_PREFIX}{profile}{TOKEN_SUFFIX}"


def profiles_with_tokens(config_dir: Path) -> list[str]:
    """Names of the profiles that have a token file, sorted."""
    if not config_dir.is_dir():
        return []
    return sorted(
        path.name[len(TOKEN_PREFIX) : -len(TOKEN_SUFFIX)]
        for path in config_dir.glob(f"{TOKEN_PREFIX}*{TOKEN_SUFFIX}")
    )


def ensure_private_dir(path: Path) -> bool:
    """
    Create a directory readable only by its owner.

    Existing directories are left untouched.

    Returns:
        True if the directory was created
    """
    if path.exists():
        return False
    path.mkdir(parents=True, mode=0o700)
    return True
