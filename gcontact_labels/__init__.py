"""
gcontact_labels - Batch contact group labeling for Google Contacts

Applies or removes contact group memberships for a selection of contact
email addresses, computing the minimal set of add/remove operations.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
