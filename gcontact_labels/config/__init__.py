"""
gcontact_labels.config - Configuration management module

Contains configuration loading, validation, and default settings.
"""

from gcontact_labels.config.generator import generate_default_config, save_config_file
from gcontact_labels.config.loader import (
    DEFAULT_CONFIG_FILE,
    VALID_DUPLICATE_HANDLING,
    ConfigError,
    ConfigLoader,
)

__all__ = [
    "ConfigError",
    "ConfigLoader",
    "DEFAULT_CONFIG_FILE",
    "VALID_DUPLICATE_HANDLING",
    "generate_default_config",
    "save_config_file",
]
