"""
gcontact_labels.utils - Utility module

Common utilities including logging configuration.
"""

from gcontact_labels.utils.normalization import normalize_email, normalize_string
from gcontact_labels.utils.paths import DEFAULT_CONFIG_DIR, resolve_config_dir

__all__ = [
    "normalize_string",
    "normalize_email",
    "resolve_config_dir",
    "DEFAULT_CONFIG_DIR",
]
