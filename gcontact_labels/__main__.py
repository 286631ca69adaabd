"""
Entry point for running gcontact_labels as a module.

Usage:
    python -m gcontact_labels --help
    python -m gcontact_labels auth
    python -m gcontact_labels show alice@example.com bob@example.com
    python -m gcontact_labels apply alice@example.com --add Work --dry-run
"""

from gcontact_labels.cli import cli

if __name__ == "__main__":
    cli()
